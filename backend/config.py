import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Delay between a start request and the first acro (seconds)
    START_DELAY_SEC = float(os.environ.get('START_DELAY_SEC', '15'))
    # Optional: heartbeat interval for timer worker logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
    # Text players are told to prefix their input with
    ACRO_INPUT_PREFIX = os.environ.get('ACRO_INPUT_PREFIX', '')
    # Game tuning. Unset values fall back to GameOptions defaults.
    ACRO_CHAR_POOL = os.environ.get('ACRO_CHAR_POOL')
    ACRO_POINT_CAP = os.environ.get('ACRO_POINT_CAP')
    ACRO_MIN_LETTERS = os.environ.get('ACRO_MIN_LETTERS')
    ACRO_MAX_LETTERS = os.environ.get('ACRO_MAX_LETTERS')
    ACRO_FACE_OFF_ROUNDS = os.environ.get('ACRO_FACE_OFF_ROUNDS')
    ACRO_FACE_OFF_MIN_LETTERS = os.environ.get('ACRO_FACE_OFF_MIN_LETTERS')
    ACRO_POINTS_VOTE_FOR_WINNER = os.environ.get('ACRO_POINTS_VOTE_FOR_WINNER')
    ACRO_POINTS_FASTEST_WITH_VOTE = os.environ.get('ACRO_POINTS_FASTEST_WITH_VOTE')
    ACRO_SECS_PER_ACRO_ROUND = os.environ.get('ACRO_SECS_PER_ACRO_ROUND')
    ACRO_SECS_PER_VOTE_ROUND = os.environ.get('ACRO_SECS_PER_VOTE_ROUND')
    ACRO_SECS_PER_FACE_OFF_ROUND = os.environ.get('ACRO_SECS_PER_FACE_OFF_ROUND')
    ACRO_SECS_BETWEEN_FACE_OFF_ROUNDS = os.environ.get('ACRO_SECS_BETWEEN_FACE_OFF_ROUNDS')
    ACRO_SECS_BETWEEN_MESSAGES = os.environ.get('ACRO_SECS_BETWEEN_MESSAGES')
    ACRO_SECS_AFTER_RESULTS = os.environ.get('ACRO_SECS_AFTER_RESULTS')
    ACRO_SECS_BETWEEN_ROUNDS = os.environ.get('ACRO_SECS_BETWEEN_ROUNDS')
