"""Entry point for python -m sam execution.

    python -m sam layout people.json
    python -m sam --help
"""

from sam.cli import run

if __name__ == "__main__":
    run()
