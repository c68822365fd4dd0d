import sys

from imaging_studio.cli.main import main

sys.exit(main())
