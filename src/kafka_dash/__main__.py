import sys

from kafka_dash.cli import main

sys.exit(main())
