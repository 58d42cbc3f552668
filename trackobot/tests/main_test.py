import io

from trackobot.__main__ import feed_results
from trackobot.match import GameMode, HeroClass, Outcome


class RecordingTracker:
    def __init__(self):
        self.results = []

    async def add_result(self, res):
        self.results.append(res)


async def test_feed_results(caplog):
    stream = io.StringIO(
        '{"mode": "ranked", "outcome": "victory", "order": "first", '
        '"hero": "mage", "opponent": "warrior", "card_history": []}\n'
        '\n'
        'this is not json\n'
        '{"card_history": "nope"}\n'
        '{"mode": "arena", "outcome": "defeat", "hero": "rogue"}\n'
    )
    tracker = RecordingTracker()
    await feed_results(tracker, stream)

    assert len(tracker.results) == 2
    assert tracker.results[0].hero == HeroClass.MAGE
    assert tracker.results[1].mode == GameMode.ARENA
    assert tracker.results[1].outcome == Outcome.DEFEAT
    assert tracker.results[1].opponent == HeroClass.UNKNOWN
    assert caplog.text.count('skipping unreadable match result') == 2
