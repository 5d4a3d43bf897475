"""User-facing text for the profile prompt dialogue."""

from __future__ import annotations

ASK_NAME = "Let's get started. What is your name?"
ASK_AGE = "How old are you?"
ASK_DATE = "When is your flight?"

GREET_NAME = "Hi {name}."
CONFIRM_AGE = "I have your age as {age}."
CONFIRM_BOOKING = "Your cab ride to the airport is scheduled for {date}."
THANK_USER = "Thanks for completing the booking {name}."
RESTART_HINT = "Type anything to run the bot again."

DID_NOT_UNDERSTAND = "I'm sorry, I didn't understand that."

NAME_REQUIRED = "Please enter a name that contains at least one character."
AGE_OUT_OF_RANGE = "Please enter an age between {min_age} and {max_age}."
AGE_UNINTERPRETABLE = (
    "I'm sorry, I could not interpret that as an age. "
    "Please enter an age between {min_age} and {max_age}."
)
DATE_TOO_SOON = "I'm sorry, please enter a date at least {lead_time} out."
DATE_UNINTERPRETABLE = (
    "I'm sorry, I could not interpret that as an appropriate date. "
    "Please enter a date at least {lead_time} out."
)

TURN_ERROR = "The bot encountered an error or bug."
TURN_ERROR_HINT = "To continue to run this bot, please fix the bot source code."
