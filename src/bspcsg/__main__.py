import sys

from bspcsg.cli import main

sys.exit(main())
