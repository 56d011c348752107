import sys

from llm_workspace.cli import main

sys.exit(main())
