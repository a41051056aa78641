import sys

from ci_orchestrator.cli import main

sys.exit(main())
