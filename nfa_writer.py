import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing_extensions import *

logger = logging.getLogger(__name__)

# Labels are bracketed by this byte so the reader can pick them out even when
# the label itself is whitespace, a quote or the arrow.
SENTINEL = "\x01"
ARROW = "->"
FILE_EXTENSION = ".nfa"

START_NAME = "START"
ACCEPT_PREFIX = "ACCEPT"
STATE_PREFIX = "STATE"

HEADER_INDENT = "    "
STATE_INDENT = "        "
TRANSITION_INDENT = "            "

ACCESSORS = (
    "get_states",
    "get_start_state",
    "get_accepting_states",
    "get_transitions",
)


class MissingDataError(ValueError):
    """The NFA object could not supply a complete, consistent snapshot."""


class WriteFailureError(OSError):
    """The serialized NFA could not be written to its destination."""


@runtime_checkable
class NfaSource(Protocol):
    """Read-only view of an automaton that can be serialized."""

    def get_states(self) -> Iterable[Any]: ...

    def get_start_state(self) -> Any: ...

    def get_accepting_states(self) -> Iterable[Any]: ...

    def get_transitions(self) -> Iterable[Tuple[Any, Any, Any]]: ...


def _read(nfa: Any, name: str) -> Any:
    accessor = getattr(nfa, name, None)
    if not callable(accessor):
        raise MissingDataError(f'NFA object is missing the "{name}" accessor.')
    try:
        value = accessor()
    except Exception as e:
        raise MissingDataError(f'"{name}" failed: {e}') from e
    if value is None:
        raise MissingDataError(f'"{name}" returned no data.')
    return value


@dataclass(frozen=True)
class NfaSnapshot:
    """
    Immutable copy of the four parts of an automaton.

    States are identified by object identity, never by equality. Each distinct
    object gets one slot in states (sorted by repr, the source's own order
    breaking ties) and everything else refers to states by that slot index.
    """

    states: Tuple[Any, ...]
    start: int
    accepting: FrozenSet[int]
    # (source index, label, destination index)
    transitions: Tuple[Tuple[int, Any, int], ...]
    identifier: int
    positions: Dict[int, int] = field(default_factory=dict, repr=False, compare=False)

    def index_of(self, state: Any) -> int:
        return self.positions[id(state)]

    @staticmethod
    def capture(nfa: Any) -> "NfaSnapshot":
        if isinstance(nfa, NfaSnapshot):
            return nfa

        parts = {name: _read(nfa, name) for name in ACCESSORS}

        try:
            ordered = sorted(parts["get_states"], key=repr)
            accepting_states = list(parts["get_accepting_states"])
            raw_transitions = list(parts["get_transitions"])
        except Exception as e:
            raise MissingDataError(f"NFA parts could not be read: {e}") from e

        states = []
        positions: Dict[int, int] = {}
        for state in ordered:
            if id(state) not in positions:
                positions[id(state)] = len(states)
                states.append(state)

        start_state = parts["get_start_state"]
        if id(start_state) not in positions:
            raise MissingDataError(
                f"Start state {start_state!r} is not one of the NFA's states."
            )

        transitions = []
        seen = set()
        for transition in raw_transitions:
            if not isinstance(transition, tuple) or len(transition) != 3:
                raise MissingDataError(f"Malformed transition: {transition!r}")
            src, label, tgt = transition
            for endpoint in (src, tgt):
                if id(endpoint) not in positions:
                    raise MissingDataError(
                        f"Transition {transition!r} references unknown state {endpoint!r}."
                    )
            key = (positions[id(src)], label, positions[id(tgt)])
            if key not in seen:
                seen.add(key)
                transitions.append(key)

        snapshot = NfaSnapshot(
            states=tuple(states),
            start=positions[id(start_state)],
            accepting=frozenset(
                positions[id(s)] for s in accepting_states if id(s) in positions
            ),
            transitions=tuple(transitions),
            identifier=id(nfa),
            positions=positions,
        )
        logger.debug(
            "Captured NFA %d: %d states, %d transitions",
            snapshot.identifier,
            len(snapshot.states),
            len(snapshot.transitions),
        )
        return snapshot


# -----------------------------------------------------------------------------
# Naming
# -----------------------------------------------------------------------------


def display_names(snapshot: NfaSnapshot) -> List[str]:
    """
    Give each state a human-readable name, indexed like snapshot.states.

    The start state is always START and does not use up an ACCEPT or STATE
    number. Remaining states are counted separately per kind, in snapshot
    order.
    """
    names: List[str] = []
    accept_counter = 0
    state_counter = 0

    for index in range(len(snapshot.states)):
        if index == snapshot.start:
            names.append(START_NAME)
        elif index in snapshot.accepting:
            names.append(f"{ACCEPT_PREFIX}{accept_counter}")
            accept_counter += 1
        else:
            names.append(f"{STATE_PREFIX}{state_counter}")
            state_counter += 1

    return names


def adjacency(snapshot: NfaSnapshot) -> List[List[Tuple[int, Any, int]]]:
    """Outgoing transitions per state index. Sinks get an empty list."""
    graph = defaultdict(list)
    for transition in snapshot.transitions:
        graph[transition[0]].append(transition)

    return [
        sorted(graph[index], key=lambda t: (str(t[1]), t[2]))
        for index in range(len(snapshot.states))
    ]


# -----------------------------------------------------------------------------
# Output
# -----------------------------------------------------------------------------


def write(nfa: Union[NfaSource, NfaSnapshot]) -> str:
    """Serialize an automaton (or a captured snapshot) to the .nfa text format."""
    snapshot = NfaSnapshot.capture(nfa)
    names = display_names(snapshot)
    graph = adjacency(snapshot)

    # The slot index doubles as the object id
    state_lines = sorted(
        f"{STATE_INDENT}{name} (obj id: {index})\n" for index, name in enumerate(names)
    )
    accept_names = sorted(names[index] for index in snapshot.accepting)

    out = [f"Nfa (id:{snapshot.identifier})\n"]
    out.append(f"{HEADER_INDENT}All States (with hashcodes): \n")
    out.extend(state_lines)
    out.append(f"{HEADER_INDENT}Start State:   {names[snapshot.start]}\n")
    out.append(f"{HEADER_INDENT}Accept States: [{', '.join(accept_names)}]\n")

    out.append(f"{HEADER_INDENT}Transitions:\n")
    for index, outgoing in enumerate(graph):
        if not outgoing:
            continue
        out.append(f"{STATE_INDENT}{names[index]}:\n")
        for _, label, tgt in outgoing:
            out.append(
                f"{TRANSITION_INDENT}{SENTINEL}{label}{SENTINEL} {ARROW} {names[tgt]}\n"
            )

    return "".join(out)


def write_to_file(
    nfa: Union[NfaSource, NfaSnapshot], filename: str = "", strict: bool = False
) -> Optional[str]:
    """
    Serialize an automaton and save it.

    An empty filename becomes "<id>.nfa". If the file cannot be written the
    failure is logged and None is returned, unless strict is set, in which
    case WriteFailureError is raised. Returns the path written on success.
    """
    snapshot = NfaSnapshot.capture(nfa)
    if not filename:
        filename = f"{snapshot.identifier}{FILE_EXTENSION}"

    text = write(snapshot)
    try:
        with open(filename, "w", encoding="utf-8", newline="") as f:
            f.write(text)
    except OSError as e:
        if strict:
            raise WriteFailureError(f"Could not write NFA to {filename}: {e}") from e
        logger.warning("Could not write NFA to %s: %s", filename, e)
        return None

    logger.debug("Wrote NFA %d to %s", snapshot.identifier, filename)
    return filename
