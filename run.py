#!/usr/bin/env python3
"""
Run script for the Transcription Relay
"""
import uvicorn

from transcription_relay.config.settings import settings
from transcription_relay.main import app

if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port, reload=settings.debug)
