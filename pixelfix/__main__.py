import sys

from pixelfix.cli import main

sys.exit(main())
