import sys

from pubsub_subscriptions.cli import main

sys.exit(main())
