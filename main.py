#!/usr/bin/env python3
"""
what - ask a language model what went wrong in your terminal.

This is the main entry point when running from a source checkout.
"""

import sys
import os
from pathlib import Path

# Add the current directory to Python path to ensure imports work
sys.path.insert(0, str(Path(__file__).parent))

def main():
    """Import the CLI application and run it."""
    try:
        from what_cli.main import cli
    except ImportError as e:
        print(f"Error: Failed to import required modules: {e}")
        print("Please make sure you have installed the package with:")
        print("  pip install -e .")
        sys.exit(1)

    try:
        cli()
    except KeyboardInterrupt:
        print("\naborted")
        sys.exit(130)
    except Exception as e:
        print(f"Error: {e}")
        if os.environ.get("WHAT_VERBOSE"):
            import traceback
            traceback.print_exc()
        sys.exit(1)

if __name__ == "__main__":
    main()
