import sys

from tldr_rss.cli import main

sys.exit(main())
