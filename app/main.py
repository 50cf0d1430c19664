from infrastructure.logging import get_module_logger
from server import server

server_app = server.handler
logger = get_module_logger()
