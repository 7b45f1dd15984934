"""Blueprint shared by all web routes."""

import flask

web_bp = flask.Blueprint('web', __name__)
