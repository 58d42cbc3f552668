# SPDX-License-Identifier: GPL-2.0-or-later
"""Match results as reported by the observer, and their upload format."""

import dataclasses
import enum
from typing import Any, Dict, List

# Card id of The Coin, played by the player going second.
COIN_CARD_ID = 'GAME_005'


class GameMode(enum.Enum):
    RANKED = 'ranked'
    CASUAL = 'casual'
    ARENA = 'arena'
    PRACTICE = 'practice'
    SOLO_ADVENTURES = 'solo'
    TAVERN_BRAWL = 'tavernbrawl'
    UNKNOWN = 'unknown'


class Outcome(enum.Enum):
    VICTORY = 'victory'
    DEFEAT = 'defeat'
    UNKNOWN = 'unknown'


class GoingOrder(enum.Enum):
    FIRST = 'first'
    SECOND = 'second'
    UNKNOWN = 'unknown'


class HeroClass(enum.Enum):
    PRIEST = 'priest'
    ROGUE = 'rogue'
    MAGE = 'mage'
    PALADIN = 'paladin'
    WARRIOR = 'warrior'
    WARLOCK = 'warlock'
    HUNTER = 'hunter'
    SHAMAN = 'shaman'
    DRUID = 'druid'
    UNKNOWN = 'unknown'


class Player(enum.Enum):
    SELF = 'me'
    OPPONENT = 'opponent'


def _parse_enum(kls, value):
    try:
        return kls(value)
    except ValueError:
        return kls.UNKNOWN


@dataclasses.dataclass
class CardHistoryEntry:
    """A card played during the match, by `player`."""

    player: Player
    card_id: str

    def as_json(self) -> Dict[str, str]:
        return {'player': self.player.value, 'card_id': self.card_id}


@dataclasses.dataclass
class MatchResult:
    """Class that represents the outcome of a finished match."""

    mode: GameMode = GameMode.UNKNOWN
    outcome: Outcome = Outcome.UNKNOWN
    order: GoingOrder = GoingOrder.UNKNOWN
    hero: HeroClass = HeroClass.UNKNOWN
    opponent: HeroClass = HeroClass.UNKNOWN
    card_history: List[CardHistoryEntry] = dataclasses.field(
        default_factory=list
    )

    @classmethod
    def from_json(kls, obj: Any) -> 'MatchResult':
        """Returns a MatchResult from an observer report.

        Missing or unrecognized fields are UNKNOWN. Raises ValueError if `obj`
        is not an object or if its card history is malformed.
        """
        if not isinstance(obj, dict):
            raise ValueError('match result must be an object')

        history = obj.get('card_history') or []
        if not isinstance(history, list):
            raise ValueError('card_history must be a list')
        try:
            card_history = [
                CardHistoryEntry(Player(item['player']), str(item['card_id']))
                for item in history
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError('malformed card history entry: {}'.format(e))

        return kls(
            mode=_parse_enum(GameMode, obj.get('mode')),
            outcome=_parse_enum(Outcome, obj.get('outcome')),
            order=_parse_enum(GoingOrder, obj.get('order')),
            hero=_parse_enum(HeroClass, obj.get('hero')),
            opponent=_parse_enum(HeroClass, obj.get('opponent')),
            card_history=card_history,
        )

    def as_json(self) -> Dict[str, Any]:
        """Returns the upload format of this result."""
        return {
            'coin': self.order == GoingOrder.SECOND,
            'hero': self.hero.value,
            'opponent': self.opponent.value,
            'win': self.outcome == Outcome.VICTORY,
            'mode': self.mode.value,
            'card_history': [entry.as_json() for entry in self.card_history],
        }

    def __str__(self):
        return '{} {} vs. {} as {}. Went {}'.format(
            self.mode.value, self.outcome.value, self.opponent.value,
            self.hero.value, self.order.value)
