"""Tests for the story_prompts module."""

import pytest
from common import story_prompts


def test_build_prompt_includes_inputs():
  prompt = story_prompts.build_prompt("Mia", "girl", "dragons, the moon")

  assert "a brave girl named Mia" in prompt
  assert "Include: dragons, the moon." in prompt
  assert "300–500 words" in prompt


@pytest.mark.parametrize("name,gender,keywords", [
  ("", "girl", "dragons"),
  ("Mia", "   ", "dragons"),
  ("Mia", "girl", None),
])
def test_build_prompt_rejects_missing_fields(name, gender, keywords):
  with pytest.raises(story_prompts.ValidationError):
    story_prompts.build_prompt(name, gender, keywords)


def test_build_story_request_strips_fields():
  request = story_prompts.build_story_request(" Leo ", "boy", " trains ", "")

  assert request.name == "Leo"
  assert request.keywords == "trains"
  assert request.image_base64 is None


def test_build_cover_prompt():
  assert (story_prompts.build_cover_prompt("Leo", "trains, snow") ==
          "A children's story about Leo: trains, snow")


def test_decorate_text_to_image_prompt():
  decorated = story_prompts.decorate_text_to_image_prompt("a bunny")

  assert decorated.startswith("Children's book cover illustration of: a bunny")
  assert "fairy tale style" in decorated


def test_parse_story_text_title_block_with_marker():
  result = story_prompts.parse_story_text(
    "# The Moon Dragon\n\nOnce upon a time...\n\nThe end.", "Mia")

  assert result.title == "The Moon Dragon"
  assert result.content == "Once upon a time...\n\nThe end."


def test_parse_story_text_title_prefix_case_insensitive():
  result = story_prompts.parse_story_text("title: Brave Leo\n\nHe went out.",
                                          "Leo")

  assert result.title == "Brave Leo"
  assert result.content == "He went out."


def test_parse_story_text_short_first_line():
  result = story_prompts.parse_story_text(
    "Leo and the Snow Train\nLeo loved trains.\nThe end.", "Leo")

  assert result.title == "Leo and the Snow Train"
  assert result.content == "Leo loved trains.\nThe end."


def test_parse_story_text_falls_back_to_generated_title():
  raw = "Leo woke up early and ran to the window to see the snow."

  result = story_prompts.parse_story_text(raw, "Leo")

  assert result.title == "Leo's Magical Adventure"
  assert result.content == raw


def test_parse_story_text_long_first_line_falls_back():
  raw = "A" * 120 + "\nmore"

  result = story_prompts.parse_story_text(raw, "Mia")

  assert result.title == "Mia's Magical Adventure"
  assert result.content == raw


def test_parse_story_text_marker_only_title_falls_back():
  result = story_prompts.parse_story_text("#\n\nStory body.", "Mia")

  assert result.title == "Mia's Magical Adventure"
  assert result.content == "Story body."


def test_parse_story_text_strips_marker_once():
  result = story_prompts.parse_story_text("# # Twice\n\nBody", "Mia")

  assert result.title == "# Twice"


@pytest.mark.parametrize("raw,expected_title,expected_content", [
  ("Hello\n\nWorld is great.", "Hello", "World is great."),
  ("A Short Day\nLine two\nLine three", "A Short Day",
   "Line two\nLine three"),
  ("This is a long run-on single paragraph that ends with a period.",
   "Amy's Magical Adventure",
   "This is a long run-on single paragraph that ends with a period."),
])
def test_parse_story_text_split_rules(raw, expected_title, expected_content):
  result = story_prompts.parse_story_text(raw, "Amy")

  assert result.title == expected_title
  assert result.content == expected_content
