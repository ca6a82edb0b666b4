import sys

from logrank.cli import main

sys.exit(main())
