"""Smart entry point: CLI when interactive, vault bridge when spawned over stdio."""

import sys


def main():
    if not sys.stdin.isatty() and len(sys.argv) == 1:
        from anivault.bridge.server import main as bridge_main

        bridge_main()
    else:
        from anivault.cli.main import app

        app()


if __name__ == "__main__":
    main()
