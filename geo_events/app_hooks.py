from typing import Optional, Protocol

class AppHooks(Protocol):
    """
    Protocol for application hooks to follow a build.
    This can be implemented by the host application to show
    progress and status while rows are enriched.

    Methods:
        report_step(info, target, reset_counter, plus_step) -> None:
            Report progress of the current step.
    """
    def report_step(self, info: str = "", target: Optional[int] = None, reset_counter: bool = False, plus_step: int = 1) -> None:
        """
        Report progress messages from the enrichment process.

        Args:
            info (str): Progress message.
            target (Optional[int]): Number of steps expected.
            reset_counter (bool): Restart counting from zero.
            plus_step (int): Steps completed since the last report.
        """
        pass

    def update_key_value(self, key: str, value) -> None:
        """
        Report a status update with a key-value pair.

        Args:
            key (str): Status key.
            value: Status value.
        """
        pass
