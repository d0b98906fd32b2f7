import sys

from grntest.tester import main

sys.exit(main())
