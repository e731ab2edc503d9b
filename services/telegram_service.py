from telegram import Bot
from telegram.error import TelegramError
import asyncio
import threading
import logging
from queue import Queue, Empty

from core.errors import NotificationTransportError

logger = logging.getLogger(__name__)


class TelegramService:
    """Notifier delivering alert messages to Telegram chats.

    ``send()`` only enqueues; a worker thread with its own event loop
    performs delivery so a slow transport never delays sampling.
    """

    def __init__(self, token, bot=None):
        self.token = token
        self.bot = bot if bot is not None else (Bot(token=token) if token else None)
        self.message_queue = Queue()
        self.worker_thread = None
        self.is_worker_running = False

    @staticmethod
    def format_message(subject, body):
        return f"*{subject}*\n\n{body}"

    async def _send_message_async(self, chat_id, text):
        try:
            await self.bot.send_message(chat_id=chat_id, text=text, parse_mode="Markdown")
        except TelegramError as e:
            raise NotificationTransportError(f"Telegram rejected message to {chat_id}: {e}") from e

    def deliver(self, subject, body, recipients, loop=None):
        """Send one notification to every recipient in order; True when all succeed"""
        if self.bot is None:
            logger.info("Not sending notification: No Telegram token")
            return False
        if not recipients:
            logger.info("Not sending notification: No recipients specified")
            return False

        owns_loop = loop is None
        if owns_loop:
            loop = asyncio.new_event_loop()
        text = self.format_message(subject, body)
        delivered = True
        try:
            for chat_id in recipients:
                try:
                    loop.run_until_complete(self._send_message_async(chat_id, text))
                    logger.info(f"Sent notification to {chat_id}")
                except NotificationTransportError as e:
                    logger.error(f"Notification error: {e}")
                    delivered = False
        finally:
            if owns_loop:
                loop.close()
        return delivered

    def _process_queue(self):
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            while self.is_worker_running:
                try:
                    subject, body, recipients = self.message_queue.get(timeout=1)
                except Empty:
                    continue
                try:
                    self.deliver(subject, body, recipients, loop=loop)
                except Exception as e:
                    logger.error(f"Error in Telegram worker thread: {e}")
                finally:
                    self.message_queue.task_done()
        finally:
            loop.close()

    def start_worker(self):
        if not self.is_worker_running:
            self.is_worker_running = True
            self.worker_thread = threading.Thread(target=self._process_queue, daemon=True, name="TelegramWorker")
            self.worker_thread.start()
            logger.info("Telegram worker thread started")

    def stop_worker(self):
        self.is_worker_running = False
        if self.worker_thread:
            self.worker_thread.join(timeout=5)
            logger.info("Telegram worker thread stopped")

    def send(self, subject, body, recipients):
        """Queue a notification for asynchronous delivery"""
        self.message_queue.put((subject, body, tuple(recipients)))
