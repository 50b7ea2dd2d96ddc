import os
import tempfile

# settings are loaded (and directories created) when tpcli.core.config is first imported
_DATA_DIR = tempfile.mkdtemp(prefix="tpcli-tests-")
os.environ["TPCLI_BASE_DIR"] = _DATA_DIR
os.environ["TPCLI_DATA_DIR"] = _DATA_DIR
os.environ.pop("TPCLI_DEBUG_LOG", None)
