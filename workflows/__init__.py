"""Profile prompt dialogue: types, validators, state and turn runtime."""
