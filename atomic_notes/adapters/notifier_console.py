from atomic_notes.core.interfaces import Notifier
from atomic_notes.logger import console


class ConsoleNotifier(Notifier):
    def notify_info(self, message: str) -> None:
        console.print(message, markup=False)

    def notify_success(self, message: str) -> None:
        console.print(f"[green]✓[/green] {_escape(message)}")

    def notify_failure(self, message: str) -> None:
        console.print(f"[red]✗[/red] {_escape(message)}")


def _escape(message: str) -> str:
    return message.replace("[", "\\[")
