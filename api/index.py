"""
AWS Lambda entry point for the Citizen Grievance API
"""
import os

# Serverless defaults: one process per container, no local rules file
os.environ.setdefault("ENVIRONMENT", "production")
os.environ.setdefault("CLASSIFIER_RULES_PATH", "/tmp/classifier_rules.yaml")

from mangum import Mangum
from src.main import app

# Lambda handler for the ASGI app; lifespan builds the grievance service per container
handler = Mangum(app, lifespan="auto")
