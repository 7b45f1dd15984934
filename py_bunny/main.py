"""Cloud Functions entry point."""

import logging

from common import firebase_init
from functions import story_fns, usage_fns, web_fns

# Configure basic logging for the application (primarily for emulator visibility)
logging.basicConfig(level=logging.INFO)

app = firebase_init.app

# Export the story functions
generate_story = story_fns.generate_story
generate_cover = story_fns.generate_cover
create_story = story_fns.create_story

# Export the usage functions
usage_stats = usage_fns.usage_stats
record_share = usage_fns.record_share
reset_monthly_usage_scheduler = usage_fns.reset_monthly_usage_scheduler

# Export the web functions
web_app = web_fns.web_app
