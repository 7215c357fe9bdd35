from mangum import Mangum

from core.config import get_config
from treasury.api import create_app
from treasury.bootstrap import build_services

config = get_config().model_copy(update={"api_root_path": "/api"})

services = build_services(config)
app = create_app(config, services)

handler = Mangum(app)
