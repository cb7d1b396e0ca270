from __future__ import annotations

from typing import Sequence

from scoutforall.contracts import EventEntry, EventType, Phase, PlayerEntry, Role, SubstitutionRecord, TeamRoster
from scoutforall.core import LineupError, configuration_error, get_logger

logger = get_logger(__name__)

COURT_SLOTS = 6
BACK_ROW_SLOTS = frozenset({0, 4, 5})
DEFAULT_MAX_SUBSTITUTIONS = 6

# slot the libero occupies for each rotation (setter slot)
LIBERO_SLOTS = {0: 5, 1: 0, 2: 4, 3: 5, 4: 0, 5: 4}
# rotations where the middle blocker the libero replaces is due to serve
LIBERO_EXIT_ROTATIONS = frozenset({1, 4})

_ROLE_BY_OFFSET = {
    0: Role.SETTER,
    1: Role.OUTSIDE_HITTER,
    2: Role.MIDDLE_BLOCKER,
    3: Role.OPPOSITE_HITTER,
    4: Role.OUTSIDE_HITTER,
    5: Role.MIDDLE_BLOCKER,
}


def libero_slot(rotation: int) -> int:
    if rotation not in LIBERO_SLOTS:
        raise LineupError(f"could not find a libero slot for rotation {rotation}")
    return LIBERO_SLOTS[rotation]


def libero_expected(rotation: int, phase: Phase) -> bool:
    return phase != Phase.BREAK or rotation not in LIBERO_EXIT_ROTATIONS


class Lineup:
    """Six court slots plus the rotation, libero and substitution bookkeeping of one set.

    Slot 0 is the serving position; rotating clockwise moves every player one
    slot down, so the setter's slot (the rotation) goes 0 -> 5 -> 4 ...
    """

    def __init__(
        self,
        players: Sequence[str],
        phase: Phase,
        setter_id: str,
        libero_id: str,
        fallback_libero_id: str | None = None,
        *,
        max_substitutions: int = DEFAULT_MAX_SUBSTITUTIONS,
    ) -> None:
        identifiers = {"setter_id": setter_id, "libero_id": libero_id}
        if len(players) != COURT_SLOTS or len(set(players)) != COURT_SLOTS:
            raise configuration_error(
                "the starting lineup must hold six distinct players",
                error_code="INVALID_STARTING_LINEUP",
                identifiers=identifiers,
                context={"players": list(players)},
            )
        if setter_id not in players:
            raise configuration_error(
                "could not get the current rotation",
                error_code="ROTATION_UNDERIVABLE",
                identifiers=identifiers,
                context={"players": list(players)},
            )
        if libero_id in players or (fallback_libero_id is not None and fallback_libero_id in players):
            raise configuration_error(
                "a libero cannot be part of the starting six",
                error_code="LIBERO_IN_STARTING_LINEUP",
                identifiers=identifiers,
                context={"players": list(players), "fallback_libero_id": fallback_libero_id},
            )
        if fallback_libero_id == libero_id:
            raise configuration_error(
                "the fallback libero must differ from the libero",
                error_code="DUPLICATED_LIBERO",
                identifiers=identifiers,
            )

        self._players: list[str] = list(players)
        self._phase = phase
        self._previous_phase: Phase | None = None
        self._setter = setter_id
        self._libero = libero_id
        self._fallback_libero = fallback_libero_id
        self._substitutions: list[SubstitutionRecord] = []
        self._max_substitutions = max_substitutions
        self._idle_player: str | None = None
        self._libero_replacement: str | None = None

        rotation = self.current_rotation()
        if libero_expected(rotation, phase):
            slot = libero_slot(rotation)
            self._idle_player = self._players[slot]
            self._libero_replacement = self._players[(slot + 3) % COURT_SLOTS]
            self._players[slot] = libero_id

    # state

    @property
    def players(self) -> tuple[str, ...]:
        return tuple(self._players)

    @property
    def substitutions(self) -> tuple[SubstitutionRecord, ...]:
        return tuple(self._substitutions)

    @property
    def idle_player(self) -> str | None:
        return self._idle_player

    @property
    def libero_replacement(self) -> str | None:
        return self._libero_replacement

    @property
    def previous_phase(self) -> Phase | None:
        return self._previous_phase

    @property
    def max_substitutions(self) -> int:
        return self._max_substitutions

    def current_phase(self) -> Phase:
        return self._phase

    def current_setter(self) -> str:
        return self._setter

    def current_libero(self) -> str:
        return self._libero

    def fallback_libero(self) -> str | None:
        return self._fallback_libero

    def current_rotation(self) -> int:
        try:
            return self._players.index(self._setter)
        except ValueError as exc:
            raise LineupError("could not get the current rotation") from exc

    def slot_of(self, player_id: str) -> int | None:
        try:
            return self._players.index(player_id)
        except ValueError:
            return None

    def player_at(self, slot: int) -> str:
        return self._players[slot]

    def is_on_court(self, player_id: str) -> bool:
        return player_id in self._players

    def is_libero(self, player_id: str) -> bool:
        return player_id == self._libero or player_id == self._fallback_libero

    def is_libero_on_court(self) -> bool:
        return self._libero in self._players

    def is_back_row(self, player_id: str) -> bool:
        slot = self.slot_of(player_id)
        return slot is not None and slot in BACK_ROW_SLOTS

    def serving_player(self) -> str:
        return self._players[0]

    def role_of(self, player_id: str) -> Role:
        slot = self.slot_of(player_id)
        if slot is None:
            raise LineupError("could not get the role: player not found")
        if player_id == self._libero:
            return Role.LIBERO
        offset = (slot - self.current_rotation()) % COURT_SLOTS
        return _ROLE_BY_OFFSET[offset]

    def _at_offset(self, offset: int) -> str:
        return self._players[(self.current_rotation() + offset) % COURT_SLOTS]

    def _middle_blocker_at(self, offset: int) -> str | None:
        player_id = self._at_offset(offset)
        if player_id == self._libero:
            return self._idle_player
        return player_id

    def setter(self) -> str:
        return self._at_offset(0)

    def outside_hitter_1(self) -> str:
        return self._at_offset(1)

    def middle_blocker_2(self) -> str | None:
        return self._middle_blocker_at(2)

    def opposite(self) -> str:
        return self._at_offset(3)

    def outside_hitter_2(self) -> str:
        return self._at_offset(4)

    def middle_blocker_1(self) -> str | None:
        return self._middle_blocker_at(5)

    def lineup_choices(self) -> list[tuple[str, str]]:
        choices = [
            ("setter", self.setter()),
            ("outside hitter 1", self.outside_hitter_1()),
            ("middle blocker 2", self.middle_blocker_2()),
            ("opposite", self.opposite()),
            ("outside hitter 2", self.outside_hitter_2()),
            ("middle blocker 1", self.middle_blocker_1()),
            ("libero", self._libero),
        ]
        return [(label, player_id) for label, player_id in choices if player_id is not None]

    def replaceable_choices(self) -> list[tuple[str, str]]:
        if len(self._substitutions) >= self._max_substitutions:
            return []
        already_replaced = {s.replaced for s in self._substitutions}
        return [
            (label, player_id)
            for label, player_id in self.lineup_choices()
            if player_id != self._libero and player_id not in already_replaced
        ]

    def player_choices(self, event_type: EventType) -> list[str]:
        if event_type == EventType.SERVE:
            return [self.serving_player()]
        choices = list(self._players)
        if event_type in (EventType.ATTACK, EventType.BLOCK):
            choices = [p for p in choices if p != self._libero]
        if event_type == EventType.BLOCK:
            choices = [p for p in choices if not self.is_back_row(p)]
        return choices

    def involved_players(self) -> list[str]:
        involved = dict.fromkeys(self._players)
        involved[self._libero] = None
        for extra in (self._fallback_libero, self._libero_replacement, self._idle_player):
            if extra is not None:
                involved[extra] = None
        for record in self._substitutions:
            involved[record.replacement] = None
            involved[record.replaced] = None
        return list(involved)

    # substitutions

    def check_substitution(self, replaced: str, replacement: str) -> str | None:
        if replaced not in self._players and replaced != self._idle_player:
            return f"could not find player {replaced} in the lineup"
        if any(s.replaced == replaced for s in self._substitutions):
            return f"player {replaced} was already replaced"
        if any(s.replacement == replacement for s in self._substitutions):
            return f"player {replacement} was already a replacement"
        if self.is_libero(replaced):
            return "cannot replace the libero player"
        if self.is_libero(replacement):
            return "cannot use a libero as a replacement"
        if replacement in self._players or replacement == self._idle_player:
            return f"player {replacement} is already in the lineup"
        if len(self._substitutions) >= self._max_substitutions:
            return "max number of substitutions was reached"
        enforced = next((s.replaced for s in self._substitutions if s.replacement == replaced), None)
        if enforced is not None and enforced != replacement:
            return f"player {replaced} can be only replaced by player {enforced}"
        return None

    def add_substitution(self, replaced: str, replacement: str) -> None:
        problem = self.check_substitution(replaced, replacement)
        if problem is not None:
            raise LineupError(problem)
        if replaced == self._idle_player:
            self._idle_player = replacement
        else:
            self._players[self._players.index(replaced)] = replacement
        if self._libero_replacement == replaced:
            self._libero_replacement = replacement
        self._substitutions.append(SubstitutionRecord(replacement=replacement, replaced=replaced))
        if self._setter == replaced:
            self._setter = replacement
        logger.info(
            "substitution_recorded",
            replaced=replaced,
            replacement=replacement,
            count=len(self._substitutions),
        )

    def available_replacements(self, roster: TeamRoster, player_id: str) -> list[PlayerEntry]:
        if len(self._substitutions) >= self._max_substitutions:
            return []
        records = [s for s in self._substitutions if player_id in (s.replaced, s.replacement)]
        if len(records) == 1:
            # open pair: only the way back is allowed
            record = records[0]
            if record.replacement != player_id:
                return []
            partner = roster.find(record.replaced)
            return [partner] if partner is not None else []
        if records:
            return []
        engaged = {pid for s in self._substitutions for pid in (s.replaced, s.replacement)}
        unavailable = set(self._players) | engaged
        if self._idle_player is not None:
            unavailable.add(self._idle_player)
        return [p for p in roster.players if p.player_id not in unavailable and not self.is_libero(p.player_id)]

    # liberos and setter

    def swap_libero(self) -> None:
        if self._fallback_libero is None:
            raise LineupError("there is no fallback libero to swap in")
        outgoing = self._libero
        self._libero, self._fallback_libero = self._fallback_libero, outgoing
        slot = self.slot_of(outgoing)
        if slot is not None:
            self._players[slot] = self._libero
        logger.info("libero_swapped", outgoing=outgoing, incoming=self._libero, on_court=slot is not None)

    def set_current_setter(self, player_id: str) -> None:
        if player_id not in self._players:
            raise LineupError("could not find the new setter in the lineup")
        if player_id == self._libero:
            raise LineupError("the libero cannot be the setter")
        self._setter = player_id

    # event side effects

    def apply_event_side_effects(self, event: EventEntry, next_phase: Phase | None) -> None:
        if event.event_type == EventType.SUBSTITUTION:
            if event.player_id is None or event.target_player_id is None:
                raise LineupError("a substitution needs both the replaced and the replacement player")
            self.add_substitution(event.player_id, event.target_player_id)
            return
        if event.event_type == EventType.CHANGE_LIBERO:
            self.swap_libero()
            return
        if event.event_type == EventType.CHANGE_SETTER:
            if event.player_id is None:
                raise LineupError("a setter change needs the new setter")
            self.set_current_setter(event.player_id)
            return
        if next_phase is not None:
            self._update_phase(next_phase)
        self._update_libero()

    def _update_phase(self, next_phase: Phase) -> None:
        if self._phase == Phase.SIDE_OUT and next_phase == Phase.BREAK:
            self._rotate_clockwise()
        self._previous_phase = self._phase
        self._phase = next_phase

    def _rotate_clockwise(self) -> None:
        self._players = self._players[1:] + self._players[:1]
        logger.debug("lineup_rotated", rotation=self.current_rotation(), server=self._players[0])

    def _update_libero(self) -> None:
        rotation = self.current_rotation()
        if rotation not in LIBERO_EXIT_ROTATIONS:
            return
        slot = libero_slot(rotation)
        opposite_slot = (slot + 3) % COURT_SLOTS
        if self._phase == Phase.BREAK and self._idle_player is not None and self._libero_replacement is not None:
            # the middle blocker due to serve comes back, the idle one returns opposite
            self._players[slot] = self._libero_replacement
            self._players[opposite_slot] = self._idle_player
            self._libero_replacement = self._idle_player
            self._idle_player = None
            logger.info("libero_exited", rotation=rotation, server=self._players[slot])
        elif self._phase == Phase.SIDE_OUT and self._idle_player is None:
            self._idle_player = self._players[slot]
            self._libero_replacement = self._players[opposite_slot]
            self._players[slot] = self._libero
            logger.info("libero_entered", rotation=rotation, idle=self._idle_player)

    def to_dict(self) -> dict[str, object]:
        return {
            "players": list(self._players),
            "phase": self._phase.value,
            "rotation": self.current_rotation(),
            "setter": self._setter,
            "libero": self._libero,
            "fallback_libero": self._fallback_libero,
            "idle_player": self._idle_player,
            "libero_replacement": self._libero_replacement,
            "substitutions": [[s.replaced, s.replacement] for s in self._substitutions],
        }
