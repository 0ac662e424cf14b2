import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///wormtiles.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Room capacity
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '7'))
    # Dice per turn
    DICE_COUNT = int(os.environ.get('DICE_COUNT', '8'))
    # Optional: fixed seed for reproducible dice. Unset means system randomness.
    DICE_SEED = int(os.environ['DICE_SEED']) if os.environ.get('DICE_SEED') else None
    # How many finished games the history endpoints return
    HISTORY_LIMIT = int(os.environ.get('HISTORY_LIMIT', '50'))
