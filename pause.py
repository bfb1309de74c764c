# Play / pause with optional auto-rewind

import logging

from events import Notification

log = logging.getLogger(__name__)

PAUSE_STATE_KEY = "pauseState"


class PauseController:
    def __init__(self, ctx) -> None:
        self.ctx = ctx
        self.is_paused = False

    @property
    def _rewinds(self) -> bool:
        return bool(self.ctx.options.auto_rewind and self.ctx.serializer is not None)

    def toggle(self) -> bool:
        self.set_paused(not self.is_paused)
        return self.is_paused

    def set_paused(self, paused: bool) -> None:
        ctx = self.ctx
        if paused:
            if self._rewinds:
                ctx.selection.clear()
                if ctx.serializer.load_state(ctx.engine, PAUSE_STATE_KEY):
                    log.info("Rewound to saved state")
            ctx.engine.time_scale = 0.0
            self.is_paused = True
            ctx.events.emit(Notification.PAUSED)
        else:
            if self._rewinds:
                ctx.serializer.save_state(ctx.engine, PAUSE_STATE_KEY)
            ctx.engine.time_scale = 1.0
            self.is_paused = False
            ctx.events.emit(Notification.PLAY)

    def set_auto_rewind(self, enabled: bool) -> None:
        self.ctx.options.auto_rewind = bool(enabled)
        if not enabled and self.ctx.serializer is not None:
            self.ctx.serializer.discard_state(PAUSE_STATE_KEY)
