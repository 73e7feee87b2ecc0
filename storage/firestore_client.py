from __future__ import annotations

from typing import Optional

from google.cloud import firestore

from config.settings import settings


def get_firestore_client(project_id: Optional[str] = None) -> firestore.Client:
    # If no project is configured, the library will use the ADC default project.
    project = project_id if project_id is not None else settings.FIRESTORE_PROJECT_ID
    if project:
        return firestore.Client(project=project)
    return firestore.Client()
