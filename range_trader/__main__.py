import sys

from range_trader.live.runner import main

sys.exit(main())
