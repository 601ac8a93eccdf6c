import logging
import sys
from typing_extensions import *

from automaton import TYPE_NAMES, Automaton
from io_utils import load_from_file
from nfa_writer import write, write_to_file

HELP = """
Commands:
  LOADING:
    load <file>                  - Load automata from file
    list                         - List all loaded automata

  AUTOMATA:
    show <name>                  - Print the .nfa text dump
    dump <name> [file]           - Save the .nfa dump (default file: <id>.nfa)
    test <name> <word>           - Test if word is accepted
    graph <name>                 - Visualize automaton

  GENERAL:
    delete <name>                - Delete automaton
    clear                        - Clear all
    exit                         - Exit
"""


def _load(filename: str, automata: Dict[str, Automaton]) -> None:
    loaded = load_from_file(filename)
    automata.update(loaded)
    if loaded:
        print(f"Loaded {len(loaded)} automata: {', '.join(loaded.keys())}")
    else:
        print("No items loaded")


def main(files: Optional[List[str]] = None):
    """Simple interactive terminal for inspecting and dumping automata."""
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")
    automata: Dict[str, Automaton] = {}

    print("NFA Writer Terminal - Type 'help' for commands\n")

    for filename in files or []:
        try:
            _load(filename, automata)
        except OSError as e:
            print(f"Error: {e}")

    while True:
        try:
            command = input("> ").strip()
            if not command:
                continue

            parts = command.split()
            cmd = parts[0].lower()

            if cmd in ["exit", "quit"]:
                break

            elif cmd == "help":
                print(HELP)

            elif cmd == "load":
                if len(parts) < 2:
                    print("Usage: load <filename>")
                    continue
                _load(parts[1], automata)

            elif cmd == "list":
                if automata:
                    print("Automata:")
                    for name, aut in sorted(automata.items()):
                        print(
                            f"  {name}: {TYPE_NAMES[aut.type]}, {len(aut.states)} states"
                        )
                else:
                    print("Nothing loaded")

            elif cmd in ["show", "dump", "test", "graph", "delete"]:
                if len(parts) < 2:
                    print(f"Usage: {cmd} <name>")
                elif parts[1] not in automata:
                    print(f"Automaton not found: {parts[1]}")

                elif cmd == "show":
                    print(write(automata[parts[1]]))

                elif cmd == "dump":
                    filename = parts[2] if len(parts) > 2 else ""
                    written = write_to_file(automata[parts[1]], filename)
                    if written is None:
                        print(f"Could not write {parts[1]}")
                    else:
                        print(f"Saved {parts[1]} to {written}")

                elif cmd == "test":
                    if len(parts) < 3:
                        print("Usage: test <name> <word>")
                    else:
                        accepted = automata[parts[1]].accepts(parts[2])
                        print("Accepted" if accepted else "Rejected")

                elif cmd == "graph":
                    automata[parts[1]].to_graphviz(filename=parts[1])

                elif cmd == "delete":
                    del automata[parts[1]]
                    print(f"Deleted: {parts[1]}")

            elif cmd == "clear":
                automata.clear()
                print("Cleared")

            else:
                print(f"Unknown command: {cmd}")

        except KeyboardInterrupt:
            print("\nUse 'exit' to quit")
        except EOFError:
            break
        except Exception as e:
            print(f"Error: {e}")

    print("Goodbye!")


if __name__ == "__main__":
    main(sys.argv[1:])
