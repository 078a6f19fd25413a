import sys

from exportignore.cli import main

sys.exit(main())
