import sys

from citycheck.main import main

sys.exit(main())
