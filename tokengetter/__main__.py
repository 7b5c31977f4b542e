import sys

from tokengetter.cli import main

sys.exit(main())
