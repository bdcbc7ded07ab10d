from __future__ import annotations

from api import run
from api.samples import reverse_word

if __name__ == "__main__":
    # Space で 1 ステップ、A で自動再生、H で履歴モード
    run(reverse_word, bounds=(0, 0, 900, 300))
