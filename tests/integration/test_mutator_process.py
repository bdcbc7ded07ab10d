from __future__ import annotations

import pytest

from api.samples import reverse_word
from engine.render.backend import MemoryBackend
from engine.runtime.messages import DoneMessage, PauseMessage
from engine.runtime.surface import RendererSurface
from engine.runtime.worker import MutatorHost


@pytest.mark.integration
def test_process_host_streams_batches_until_done() -> None:
    host = MutatorHost(reverse_word, bounds=(0.0, 0.0, 600.0, 200.0), workers=1)
    assert not host.inline
    surface = RendererSurface(MemoryBackend(), validate=True)
    try:
        host.start()
        pauses = 0
        while True:
            message = host.result_q.get(timeout=30)
            assert isinstance(message, (PauseMessage, DoneMessage)), message
            surface.apply(message.commands)
            if isinstance(message, DoneMessage):
                break
            pauses += 1
            host.send_continue()
    finally:
        host.close()

    assert pauses > 0
    tiles = sorted(
        (n for n in surface.registry if n.kind == "LetterTile"),
        key=lambda n: n.get_own_value("x"),
    )
    assert "".join(t.get_own_value("text") for t in tiles) == "SMHTIROGLA"
