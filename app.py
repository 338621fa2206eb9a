import logging

from workshop import create_app
from workshop.config import get_settings
from workshop.database import init_db

logger = logging.getLogger(__name__)

app = create_app()

if __name__ == '__main__':
    settings = get_settings()
    init_db(app)
    logger.info("=== %s ===", settings.app_name)
    logger.info("API running on: http://localhost:5000%s", settings.api_prefix)
    app.run(debug=settings.debug, port=5000, host='0.0.0.0')
