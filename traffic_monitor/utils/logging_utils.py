# utils/logging_utils.py

import logging, sys

def setup_logging(level='INFO'):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    # apscheduler logs every job run at INFO
    logging.getLogger('apscheduler').setLevel(logging.WARNING)
