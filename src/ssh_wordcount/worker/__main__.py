import sys

from ssh_wordcount.worker.server import main

sys.exit(main())
