from unittest.mock import MagicMock

from fisheries_service.scheduler import JobScheduler, run_safely


def test_run_safely_returns_true_and_closes_session():
    session = MagicMock()
    job = MagicMock()

    assert run_safely("demo job", job, lambda: session) is True
    job.assert_called_once_with(session)
    session.close.assert_called_once()


def test_run_safely_swallows_failures():
    session = MagicMock()
    job = MagicMock(side_effect=RuntimeError("upstream down"))

    assert run_safely("demo job", job, lambda: session) is False
    session.close.assert_called_once()


def test_failed_weather_run_does_not_raise():
    weather = MagicMock()
    weather.fetch_and_store_weather_data.side_effect = Exception("boom")
    scheduler = JobScheduler(weather_service=weather, prediction_service=MagicMock(), session_factory=MagicMock())

    assert scheduler.run_weather_update() is False


def test_prediction_run_uses_fresh_session():
    prediction = MagicMock()
    session = MagicMock()
    scheduler = JobScheduler(
        weather_service=MagicMock(), prediction_service=prediction, session_factory=lambda: session
    )

    assert scheduler.run_price_predictions() is True
    prediction.generate_daily_predictions.assert_called_once_with(session)


def test_configure_registers_both_jobs():
    scheduler = JobScheduler(weather_service=MagicMock(), prediction_service=MagicMock(), session_factory=MagicMock())

    scheduler.configure()
    scheduler.configure()

    jobs = scheduler.scheduler.jobs
    assert len(jobs) == 2
    weather_job, prediction_job = jobs
    assert (weather_job.interval, weather_job.unit) == (6, "hours")
    assert prediction_job.unit == "days"
    assert prediction_job.at_time.strftime("%H:%M") == "00:00"


def test_start_and_stop_background_thread():
    scheduler = JobScheduler(weather_service=MagicMock(), prediction_service=MagicMock(), session_factory=MagicMock())

    scheduler.start()
    assert scheduler._thread.daemon is True
    assert scheduler._thread.is_alive()

    scheduler.stop(timeout=5)
    assert scheduler._thread is None
    assert scheduler.scheduler.jobs == []
