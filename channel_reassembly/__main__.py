"""Package entry point for ``python -m channel_reassembly``.

HOW: Delegates to the CLI's main() function.
"""

from channel_reassembly.cli import main

if __name__ == "__main__":
    main()
