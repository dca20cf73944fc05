import sys

from replprompt.cli import main

sys.exit(main())
