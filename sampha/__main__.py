import sys

from sampha.server import main

sys.exit(main())
