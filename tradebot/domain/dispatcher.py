# tradebot/domain/dispatcher.py
"""
Top-level dispatcher: one call per external event.

classify → load session → execute via the workflow engine → persist.
Nothing raised while handling one event escapes ``dispatch``; the user gets
a generic failure notice and the error is logged.
"""

from __future__ import annotations

import logging
from typing import Optional

from tradebot.domain.classifier import CallbackEvent, Event, RunCallback, RunCommand, classify
from tradebot.domain.context import Services, StepContext
from tradebot.domain.engine import WorkflowEngine
from tradebot.domain.errors import WorkflowWiringError
from tradebot.domain.messages import t
from tradebot.domain.ports import SessionStore
from tradebot.domain.registry import ActionRegistry

logger = logging.getLogger("domain.dispatcher")


class Dispatcher:
    def __init__(
        self,
        registry: ActionRegistry,
        store: SessionStore,
        engine: WorkflowEngine,
        services: Services,
    ) -> None:
        self.registry = registry
        self.store = store
        self.engine = engine
        self.services = services

    async def dispatch(self, event: Event) -> None:
        user_id = event.user_id
        ctx: Optional[StepContext] = None
        try:
            session = await self.store.get(user_id)
            intent = classify(event, session, self.registry)
            logger.info("user=%s intent=%s", user_id, type(intent).__name__)

            ctx = StepContext(user_id=user_id, session=session, services=self.services)
            if isinstance(event, CallbackEvent):
                ctx.callback_id = event.callback_id
                ctx.message_id = event.message_id
            if isinstance(intent, RunCallback):
                ctx.callback = intent.decoded
            elif isinstance(intent, RunCommand):
                ctx.args = intent.args

            session = await self.engine.execute(intent, ctx)
            await self.store.set(user_id, session)

            # Telegram keeps a spinner on the button until the callback is answered
            await ctx.acknowledge()
        except WorkflowWiringError:
            logger.critical("Workflow wiring defect while handling user=%s", user_id, exc_info=True)
            await self._reset(user_id)
            await self._notify_failure(event, ctx)
        except Exception:
            logger.exception("Failed to process event for user=%s", user_id)
            await self._notify_failure(event, ctx)

    async def _reset(self, user_id: str) -> None:
        try:
            await self.store.clear(user_id)
        except Exception:
            logger.exception("Could not reset session for user=%s", user_id)

    async def _notify_failure(self, event: Event, ctx: Optional[StepContext]) -> None:
        transport = self.services.transport
        try:
            await transport.reply(event.user_id, t("GENERIC_ERROR"))
        except Exception:
            logger.warning("Could not notify user=%s about a failure", event.user_id, exc_info=True)

        if not isinstance(event, CallbackEvent) or event.callback_id is None:
            return
        if ctx is not None and ctx.acknowledged:
            return
        try:
            await transport.acknowledge(event.callback_id, None)
        except Exception:
            logger.debug("Callback %s already answered", event.callback_id)
