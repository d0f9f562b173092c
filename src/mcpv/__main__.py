# ABOUTME: Allows running mcpv as `python -m mcpv`
import sys

from mcpv.cli import main

sys.exit(main())
