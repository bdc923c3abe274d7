class StudyConfig:
    """Default configuration for the study module.

    ``STUDY_TIMED_CARD_SECONDS`` and ``STUDY_MASTERY_THRESHOLD`` in the app
    config override the defaults below.
    """

    MODES = ('standard', 'shuffle', 'timed')
    DEFAULT_MODE = 'standard'

    # Rating buttons, in display order
    DIFFICULTIES = ('easy', 'medium', 'hard', 'incorrect')
    INCORRECT = 'incorrect'
    # Applied when the timed-mode countdown expires on a revealed card
    TIMEOUT_DIFFICULTY = 'medium'

    DEFAULT_TIMED_CARD_SECONDS = 30
    DEFAULT_MASTERY_THRESHOLD = 80
    DEFAULT_HISTORY_LIMIT = 10

    TICK_INTERVAL_SECONDS = 1.0

    @staticmethod
    def timed_card_seconds():
        from flask import current_app, has_app_context

        if has_app_context():
            return int(current_app.config.get('STUDY_TIMED_CARD_SECONDS', StudyConfig.DEFAULT_TIMED_CARD_SECONDS))
        return StudyConfig.DEFAULT_TIMED_CARD_SECONDS

    @staticmethod
    def mastery_threshold():
        from flask import current_app, has_app_context

        if has_app_context():
            return int(current_app.config.get('STUDY_MASTERY_THRESHOLD', StudyConfig.DEFAULT_MASTERY_THRESHOLD))
        return StudyConfig.DEFAULT_MASTERY_THRESHOLD
