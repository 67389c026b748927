import sys

from amqp_consume.cli import main

sys.exit(main())
