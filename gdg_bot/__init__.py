"""GDG Event Assistant - a WhatsApp chatbot for Google Developer Groups.

Architecture Overview
=====================

Twilio posts each inbound WhatsApp message to ``POST /webhook/whatsapp``.
The :class:`~gdg_bot.dispatcher.MessageDispatcher` answers reserved
commands (``hi``, ``help``, ``reset``, ``status``…) itself and hands every
other message to the :class:`~gdg_bot.agent.ConversationOrchestrator`,
whose reply is delivered back through the Twilio REST API.

The orchestrator is a LangGraph state machine:

1. **chatbot** - sends the user's turn history to Gemini (or Claude) with
   the tool declarations from :mod:`gdg_bot.tools.registry`.
2. **tools** - runs the requested lookups (Google Calendar events, Google
   Sheets FAQs / speakers / resources / feedback) and records one ``tool-result``
   turn per call.
3. **final** - asks the model for the closing text answer.

Key Design Decisions
--------------------
- **One tool round per message** by default (``MAX_TOOL_ROUNDS``); the
  final completion's own tool calls are ignored.
- **Never fail loudly**: unknown tools, bad arguments and broken lookups
  become failure tool results the model can explain; a model outage
  becomes a single friendly fallback message.
- **Sessions are in memory** (:mod:`gdg_bot.session`), one lock per user
  so concurrent webhooks from the same number are serialised.
- **Google APIs over httpx** with retries, timeouts and a TTL cache
  (:mod:`gdg_bot.services`), authenticated with ``google-auth``.

Package Structure
-----------------
- ``gdg_bot/agent.py`` - completion adapter + LangGraph orchestrator
- ``gdg_bot/session.py`` - per-user session store
- ``gdg_bot/dispatcher.py`` / ``gdg_bot/commands.py`` - command routing
- ``gdg_bot/tools/`` - tool registry and lookup handlers
- ``gdg_bot/services/`` - Google, Twilio, cache and metrics adapters
- ``gdg_bot/api/`` - FastAPI routes and Pydantic schemas
- ``gdg_bot/server.py`` - FastAPI application
- ``gdg_bot/main.py`` - CLI chat loop
"""
