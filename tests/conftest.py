import re

import pytest

from automaton import Automaton

HEADER = re.compile(
    r"Nfa \(id:(?P<id>-?\d+)\)\n"
    r"    All States \(with hashcodes\): \n"
    r"(?P<states>(?:        \w+ \(obj id: \d+\)\n)*)"
    r"    Start State:   (?P<start>\w+)\n"
    r"    Accept States: \[(?P<accept>[^\]]*)\]\n"
    r"    Transitions:\n"
)
STATE_LINE = re.compile(r"        (\w+) \(obj id: (\d+)\)\n")
SOURCE_LINE = re.compile(r"        (\w+):\n")
TRANSITION_LINE = re.compile(r"            \x01(.)\x01 -> (\w+)\n", re.S)


class OpaqueNfa:
    """NFA whose states are bare objects with no name of their own."""

    def __init__(self, states, start, accepting, transitions):
        self._states = list(states)
        self._start = start
        self._accepting = list(accepting)
        self._transitions = list(transitions)

    def get_states(self):
        return self._states

    def get_start_state(self):
        return self._start

    def get_accepting_states(self):
        return self._accepting

    def get_transitions(self):
        return self._transitions


def read_dump(text):
    """Group a .nfa dump back into its parts, the way a reader would."""
    header = HEADER.match(text)
    assert header is not None, text

    accept = header.group("accept")
    dump = {
        "id": int(header.group("id")),
        "state_lines": STATE_LINE.findall(header.group("states")),
        "start": header.group("start"),
        "accepting": accept.split(", ") if accept else [],
        "sources": [],
        "transitions": [],
    }

    pos = header.end()
    source = None
    while pos < len(text):
        match = SOURCE_LINE.match(text, pos)
        if match:
            source = match.group(1)
            dump["sources"].append(source)
        else:
            match = TRANSITION_LINE.match(text, pos)
            assert match is not None and source is not None, text[pos:]
            dump["transitions"].append((source, match.group(1), match.group(2)))
        pos = match.end()

    return dump


@pytest.fixture
def reader():
    return read_dump


@pytest.fixture
def opaque_nfa():
    return OpaqueNfa


@pytest.fixture
def small_automaton():
    return Automaton(
        type=2,
        states=frozenset({"q0", "q1"}),
        start_state="q0",
        accepting_states=frozenset({"q1"}),
        transition_relation={("q0", "a", "q1")},
    )
