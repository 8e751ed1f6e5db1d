import sys

from vcardqr.cli import main

sys.exit(main())
