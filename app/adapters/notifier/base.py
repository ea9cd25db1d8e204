from abc import ABC, abstractmethod


class AbstractNotifier(ABC):
	"""Interface for clients that deliver contact submissions to a chat."""

	@abstractmethod
	async def send(
		self,
		destination_token: str,
		destination_channel: str,
		*,
		name: str,
		email: str,
		message: str,
		source: str | None = None,
	) -> None:
		"""Deliver one formatted contact message.

		Args:
			destination_token: Credential of the sending bot.
			destination_channel: Chat the message is delivered to.
			name: Submitter's name.
			email: Submitter's email address.
			message: Free-text message body.
			source: Optional origin of the submission (e.g., site name).

		Raises:
			NotifierAppError: If the transport fails or the provider rejects the message.
		"""
		...

	async def aclose(self) -> None:
		"""Release any network resources held by the notifier."""
