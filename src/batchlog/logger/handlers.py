import logging
import smtplib
from email.message import EmailMessage
from email.utils import formatdate

from batchlog.settings import get_settings


# RFC 2822 line length limit, less room for the header name
MAX_SUBJECT_LENGTH = 989


class AdminEmailHandler(logging.Handler):
    """
    Email every record it handles to the administrators named in the settings.

    The SMTP connection details, sender, recipients and subject prefix are read
    from the active settings when a record is emitted, so the handler can be
    created by dictConfig before the settings are final.
    """

    def __init__(self, include_context=True, settings=None):
        super().__init__()
        self.include_context = include_context
        self._settings = settings

    @property
    def settings(self):
        return self._settings or get_settings()

    def emit(self, record):
        if not self.settings.admins:
            return

        try:
            subject = self.format_subject(
                f"{self.settings.email_subject_prefix}"
                f"{record.levelname}: {record.getMessage()}"
            )
            self.send_mail(subject, self.format_body(record))
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)

    def format_subject(self, subject):
        """
        Escape CR and LF characters and cut the subject to a length mail
        servers accept.
        """
        subject = subject.replace("\n", "\\n").replace("\r", "\\r")
        return subject[:MAX_SUBJECT_LENGTH]

    def format_body(self, record):
        body = self.format(record)
        stack = getattr(record, "processing_stack", "")

        if self.include_context and stack:
            body += f"\n\nProcessing: {stack}"

        return body

    def send_mail(self, subject, body):
        settings = self.settings
        msg = EmailMessage()
        msg["From"] = settings.server_email
        msg["To"] = ", ".join(settings.admin_emails)
        msg["Subject"] = subject
        msg["Date"] = formatdate()
        msg.set_content(body)

        kwargs = {}

        if settings.email_timeout is not None:
            kwargs["timeout"] = settings.email_timeout

        smtp = smtplib.SMTP(settings.email_host, settings.email_port, **kwargs)

        try:
            if settings.email_use_tls:
                smtp.starttls()

            if settings.email_host_user:
                smtp.login(settings.email_host_user, settings.email_host_password)

            smtp.send_message(msg)
        finally:
            smtp.quit()
