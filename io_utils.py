import logging
import os
import re
from typing_extensions import *

from automaton import Automaton

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r"^([A-Za-z]\w*):\s*$", re.MULTILINE)


def load_from_file(filename: str) -> Dict[str, Automaton]:
    """
    Load automata from a definition file.

    Either the file holds named sections ("NAME:" on a line of its own, then
    the definition), or it is a plain list of "---"-separated automata, named
    after the file: base, base1, base2, ...
    """
    automata: Dict[str, Automaton] = {}

    with open(filename, "r", encoding="utf-8") as f:
        content = f.read()

    if NAME_PATTERN.search(content):
        sections = NAME_PATTERN.split(content)

        for i in range(1, len(sections), 2):
            if i + 1 >= len(sections):
                continue

            name = sections[i].strip()
            definition = sections[i + 1].strip()

            if not definition:
                continue

            try:
                loaded = Automaton.from_string(definition)
            except ValueError as e:
                logger.warning("Skipping automaton '%s': %s", name, e)
                continue
            if loaded:
                automata[name] = loaded[0]
    else:
        base_name = os.path.basename(filename).rsplit(".", 1)[0]

        try:
            loaded = Automaton.from_string(content)
        except ValueError as e:
            logger.warning("Skipping %s: %s", filename, e)
            return automata

        for idx, aut in enumerate(loaded):
            key = f"{base_name}{idx if idx > 0 else ''}"
            automata[key] = aut

    logger.debug("Loaded %d automata from %s", len(automata), filename)
    return automata
