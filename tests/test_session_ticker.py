import threading

from flask_login import login_user

from studyloop_app.models import CardProgress
from studyloop_app.modules.study.engine import ReviewStateMachine
from studyloop_app.modules.study.engine.ticker import SessionTicker
from studyloop_app.modules.study.interface import StudyInterface

from test_review_state_machine import CARDS, FakeGateway


class ManualScheduler:
    """Stands in for APScheduler's scheduler so ticks can be driven by hand."""

    def __init__(self):
        self.jobs = {}
        self.running = False

    def add_job(self, func, trigger, seconds, id, **kwargs):
        self.jobs[id] = func
        return id

    def remove_job(self, job_id):
        del self.jobs[job_id]

    def fire(self):
        for func in list(self.jobs.values()):
            func()


def test_ticker_feeds_machine_and_stops_on_completion():
    gateway = FakeGateway(CARDS[:1])
    machine = ReviewStateMachine(gateway, 1, 'user-1', 'timed', card_duration=2)
    machine.start()
    scheduler = ManualScheduler()
    ticker = SessionTicker(machine, scheduler=scheduler)

    ticker.start()
    ticker.start()
    assert len(scheduler.jobs) == 1

    machine.reveal()
    scheduler.fire()
    scheduler.fire()

    assert machine.state.is_completed
    assert gateway.reviews == [(1, 1, True)]
    assert ticker.running is False
    assert scheduler.jobs == {}


def test_ticker_runs_ticks_inside_app_context(app):
    seen = []

    class ContextProbe:
        session_id = 1

        def tick(self):
            from flask import has_app_context

            seen.append(has_app_context())
            return machine.state

    gateway = FakeGateway()
    machine = ReviewStateMachine(gateway, 1, 'user-1', 'standard')
    machine.start()
    scheduler = ManualScheduler()
    ticker = SessionTicker(ContextProbe(), app=app, scheduler=scheduler)

    ticker.start()
    worker = threading.Thread(target=scheduler.fire)
    worker.start()
    worker.join(5)
    ticker.stop()

    assert seen == [True]
    assert ticker.running is False


def test_background_scheduler_ticks():
    machine = ReviewStateMachine(FakeGateway(), 1, 'user-1', 'standard')
    machine.start()
    ticker = SessionTicker(machine, interval=0.05)

    ticked = threading.Event()
    plain_tick = machine.tick

    def tick():
        state = plain_tick()
        ticked.set()
        return state

    machine.tick = tick
    ticker.start()
    try:
        assert ticked.wait(5)
    finally:
        ticker.stop()

    assert machine.state.elapsed_seconds >= 1


def test_interface_ticker_auto_rates_timed_cards(app, user, deck):
    scheduler = ManualScheduler()
    with app.test_request_context():
        login_user(user)
        machine = StudyInterface.create_machine(deck.id, 'timed')
        machine.start()
        ticker = StudyInterface.create_ticker(machine, scheduler=scheduler)

    assert ticker.app is app
    ticker.start()
    machine.reveal()
    for _ in range(app.config['STUDY_TIMED_CARD_SECONDS']):
        scheduler.fire()

    assert machine.state.index == 1
    progress = CardProgress.query.filter_by(user_id=user.user_id).one()
    assert progress.total_reviews == 1
    assert progress.mastery_level == 100
    ticker.stop()
