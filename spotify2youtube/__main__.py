import sys

from spotify2youtube.cli import main

sys.exit(main())
