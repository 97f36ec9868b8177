import sys

from grisp_build.cli import main

sys.exit(main())
