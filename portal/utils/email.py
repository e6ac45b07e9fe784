from flask import current_app
from flask_mail import Message
from threading import Thread
from portal.extensions import mail
from portal.utils.dates import ensure_utc, utcnow

SENDER_NAME = "Events Portal"


def send_async_email(app, msg):
    with app.app_context():
        try:
            mail.send(msg)
        except Exception as e:
            app.logger.error(f"Failed to send email: {e}")


def _sender(app):
    return (SENDER_NAME, app.config.get("MAIL_DEFAULT_SENDER"))


def send_cancellation_email(attendee_name, recipient, event):
    """Confirm to the attendee that their registration was cancelled."""
    app = current_app._get_current_object()
    event_url = f"{app.config.get('CLIENT_URL')}/events/{event.id}"

    # If in testing mode, log the email instead of sending it
    if app.testing:
        app.logger.info("--- MOCK CANCELLATION EMAIL ---")
        app.logger.info(f"To: {recipient}")
        app.logger.info(f"Subject: Registration cancelled - {event.title}")
        app.logger.info(f"Event URL: {event_url}")
        app.logger.info("--- END MOCK CANCELLATION EMAIL ---")
        return

    event_date = ensure_utc(event.date)
    location = "Online event" if event.format.value == "online" else (
        event.address or "Venue to be announced"
    )

    msg = Message(
        f"Registration cancelled - {event.title}",
        sender=_sender(app),
        recipients=[recipient],
    )
    msg.body = f"""
Hello {attendee_name},

We confirm that your registration for the event below has been cancelled.

Event: {event.title}
Date: {event_date.strftime('%B %d, %Y')}
Location: {location}

Your seat has been released to other participants. If you cancelled by
mistake you can register again, subject to availability:

{event_url}

This is an automated message, please do not reply.
(c) {utcnow().year} {SENDER_NAME}
"""

    Thread(target=send_async_email, args=(app, msg)).start()


def send_otp_email(email, code, expiry_minutes, subject=None):
    """Send a one-time verification code. Raises if the mail backend refuses it."""
    app = current_app._get_current_object()
    subject = subject or f"Verification code - {SENDER_NAME}"

    if app.testing:
        app.logger.info("--- MOCK OTP EMAIL ---")
        app.logger.info(f"To: {email}")
        app.logger.info(f"Subject: {subject}")
        app.logger.info(f"Code: {code}")
        app.logger.info("--- END MOCK OTP EMAIL ---")
        return

    msg = Message(subject, sender=_sender(app), recipients=[email])
    msg.body = f"""
Use the code below to confirm your email address:

    {code}

This code expires in {expiry_minutes} minutes.
If you did not request it, you can ignore this message.
"""
    # Sent synchronously so the caller learns about delivery failures
    mail.send(msg)
