import sys

from autosub.main import main

sys.exit(main())
