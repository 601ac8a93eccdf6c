from collections import defaultdict
from dataclasses import dataclass, field
from typing_extensions import *

from graphviz import Digraph

from nfa_writer import SENTINEL, NfaSnapshot, display_names

TYPE_NAMES = {1: "DEA", 2: "NEA"}

ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "s": " "}


def parse_symbol(token: str) -> str:
    """Turn a symbol token like "a", "\\n" or "\\-" into its character."""
    if len(token) == 2 and token.startswith("\\"):
        return ESCAPES.get(token[1], token[1])
    return token


@dataclass
class Automaton:
    """
    Finite automaton over single-character labels.

    type:
        1 = DEA
        2 = NEA
    """

    type: int = 2
    states: frozenset = field(default_factory=frozenset)
    alphabet: Set[str] = field(default_factory=set)
    start_state: Any = None

    # Set[Tuple[state, symbol, state]]
    transition_relation: Set[Tuple[Any, str, Any]] = field(default_factory=set)

    accepting_states: frozenset = field(default_factory=frozenset)

    # -------------------------------------------------------------------------
    # Construction / loading
    # -------------------------------------------------------------------------

    @staticmethod
    def load_from_file(file_path: str) -> List["Automaton"]:
        with open(file_path, "r", encoding="utf-8") as f:
            content = f.read()
        return Automaton.from_string(content)

    @staticmethod
    def from_string(content: str) -> List["Automaton"]:
        automata = []
        for block in content.split("---"):
            block = block.strip()
            if not block:
                continue
            automata.append(Automaton._parse_block(block))
        return automata

    @staticmethod
    def _parse_block(block: str) -> "Automaton":
        states = set()
        alphabet = set()
        start_state = None
        accepting_states = set()
        transitions = set()
        automaton_type = 2  # default NEA

        for line in block.strip().split("\n"):
            line = line.strip()

            if not line or line.startswith("#"):
                continue
            elif line.startswith("type:"):
                t = line[5:].strip()
                if t.isdigit():
                    automaton_type = int(t)
                else:
                    type_map = {"dfa": 1, "dea": 1, "nfa": 2, "nea": 2}
                    if t.lower() not in type_map:
                        raise ValueError(f"Unknown automaton type: {t}")
                    automaton_type = type_map[t.lower()]

            elif line.startswith("alphabet:"):
                alphabet.update(parse_symbol(s) for s in line[9:].split())

            elif line.startswith("states:"):
                states.update(line[7:].split())

            elif line.startswith("start:"):
                start_state = line[6:].strip()

            elif line.startswith("accept:"):
                accepting_states.update(line[7:].split())

            # Transition: q0 -> a -> q1
            elif line.count("->") == 2:
                src, symbol, tgt = [p.strip() for p in line.split("->")]
                transitions.add((src, parse_symbol(symbol), tgt))

            # Transition: q0 a q1
            elif len(line.split()) == 3:
                src, symbol, tgt = line.split()
                transitions.add((src, parse_symbol(symbol), tgt))

            else:
                raise ValueError(f"Cannot parse line: {line}")

        if start_state is None:
            raise ValueError("Automaton definition has no start state")

        # States only mentioned in transitions or start/accept lines still count
        states.add(start_state)
        states.update(accepting_states)
        for src, _, tgt in transitions:
            states.update((src, tgt))

        return Automaton(
            type=automaton_type,
            states=frozenset(states),
            alphabet=alphabet,
            start_state=start_state,
            accepting_states=frozenset(accepting_states),
            transition_relation=transitions,
        )

    def __post_init__(self):
        """Validate the automaton type and labels."""
        if self.type not in TYPE_NAMES:
            raise ValueError(f"Invalid automaton type: {self.type}. Must be 1 or 2.")

        # Equal state values are one state: every reference points at the
        # object held in states.
        canonical = {state: state for state in self.states}
        self.start_state = canonical.get(self.start_state, self.start_state)
        self.accepting_states = frozenset(
            canonical.get(s, s) for s in self.accepting_states
        )
        self.transition_relation = {
            (canonical.get(src, src), sym, canonical.get(tgt, tgt))
            for src, sym, tgt in self.transition_relation
        }

        for src, symbol, tgt in self.transition_relation:
            if not isinstance(symbol, str) or len(symbol) != 1:
                raise ValueError(
                    f"Transition {src!r} -> {tgt!r} needs a single character label, got {symbol!r}"
                )
            if symbol == SENTINEL:
                raise ValueError("The \\x01 byte is reserved and cannot be a label")
            self.alphabet.add(symbol)

        if self.type == 1:
            for (state, symbol), targets in self._get_transition_dict().items():
                if len(targets) > 1:
                    raise ValueError(
                        f"DEA has {len(targets)} transitions from {state!r} on {symbol!r}"
                    )

    # -------------------------------------------------------------------------
    # Read access (NfaSource)
    # -------------------------------------------------------------------------

    def get_states(self) -> frozenset:
        return self.states

    def get_start_state(self) -> Any:
        return self.start_state

    def get_accepting_states(self) -> frozenset:
        return self.accepting_states

    def get_transitions(self) -> FrozenSet[Tuple[Any, str, Any]]:
        return frozenset(self.transition_relation)

    # -------------------------------------------------------------------------
    # Transition helpers
    # -------------------------------------------------------------------------

    def _get_transition_dict(self) -> Dict[Tuple[Any, str], frozenset]:
        result = defaultdict(set)
        for src, sym, tgt in self.transition_relation:
            result[(src, sym)].add(tgt)
        return {k: frozenset(v) for k, v in result.items()}

    def accepts(self, word: str) -> bool:
        trans_dict = self._get_transition_dict()
        current = {self.start_state}
        for symbol in word:
            current = {
                target
                for state in current
                for target in trans_dict.get((state, symbol), frozenset())
            }
            if not current:
                return False
        return bool(current & self.accepting_states)

    # -------------------------------------------------------------------------
    # Visualization
    # -------------------------------------------------------------------------

    @staticmethod
    def _edge_label(symbol: str) -> str:
        if symbol == " ":
            return "␣"
        if symbol.isprintable():
            return symbol
        return repr(symbol)[1:-1]

    def to_graphviz(
        self, filename: str = "automaton", view: bool = True, render: bool = True
    ) -> Digraph:
        """
        Build a Graphviz diagram of this automaton.

        States carry the same START/ACCEPTk/STATEk names as the text dump, so a
        picture and a .nfa file of the same automaton can be read side by side.
        """
        snapshot = NfaSnapshot.capture(self)
        names = display_names(snapshot)
        title = TYPE_NAMES[self.type]

        dot = Digraph(
            name=title,
            format="png",
            graph_attr={
                "rankdir": "LR",
                "label": title,
                "labelloc": "t",
                "fontname": "Arial",
                "dpi": "300",
            },
            node_attr={
                "shape": "circle",
                "fontname": "Arial",
                "style": "filled",
                "fillcolor": "lightblue",
            },
            edge_attr={"fontname": "Arial", "arrowsize": "0.8"},
        )

        dot.node("__start__", shape="point", width="0.01", style="invis")

        for index, name in enumerate(names):
            if index in snapshot.accepting:
                dot.node(
                    name,
                    shape="doublecircle",
                    fillcolor="lightgreen",
                )
            else:
                dot.node(name)

        dot.edge("__start__", names[snapshot.start], penwidth="2")

        transitions = defaultdict(list)
        for src, sym, tgt in snapshot.transitions:
            transitions[(names[src], names[tgt])].append(self._edge_label(sym))

        for (src_id, tgt_id), symbols in sorted(transitions.items()):
            label = ", ".join(sorted(symbols))
            if src_id == tgt_id:
                dot.edge(src_id, tgt_id, label=label, headport="n", tailport="n")
            else:
                dot.edge(src_id, tgt_id, label=label)

        if render:
            dot.render(filename, view=view, cleanup=True)
        return dot
