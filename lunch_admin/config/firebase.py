import logging

import firebase_admin
from firebase_admin import credentials

from lunch_admin.config.settings import settings

logger = logging.getLogger(__name__)

def get_firebase_app():
    """Returns the default Firebase app, initializing it on first use."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    if settings.FIREBASE_CREDENTIALS:
        cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS)
    else:
        cred = credentials.ApplicationDefault()

    options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None
    app = firebase_admin.initialize_app(cred, options)
    logger.info("Initialized Firebase app for project %s", app.project_id)
    return app
