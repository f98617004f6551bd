from typing import Any, Dict, List, Mapping, Optional, Sequence

from switchboard.mcp._connection_supervisor import ConnectionSupervisor
from switchboard.mcp._function_executor import FunctionExecutor
from switchboard.mcp._loop_runner import LoopRunner
from switchboard.types import ConnectedServerSnapshot, FunctionCall, ServerConfig, ToolCallResult


class SyncConnectionSupervisor:
    """
    A blocking facade over `ConnectionSupervisor` for synchronous callers.

    Every operation is submitted to the single event loop of a `LoopRunner`, so the
    sessions opened by `connect` stay on the loop that later calls use.

    Parameters
    ----------
    supervisor : Optional[ConnectionSupervisor]
        The supervisor to drive. A default supervisor is created if omitted.
    runner : Optional[LoopRunner]
        The runner to submit operations to. A dedicated runner is created if omitted.
    """

    _supervisor: ConnectionSupervisor
    _runner: LoopRunner
    _executor: FunctionExecutor

    def __init__(
        self,
        supervisor: Optional[ConnectionSupervisor] = None,
        runner: Optional[LoopRunner] = None,
    ):
        self._supervisor = supervisor or ConnectionSupervisor()
        self._runner = runner or LoopRunner(name="switchboard-sync-supervisor")
        self._executor = FunctionExecutor(self._supervisor)

    @property
    def supervisor(self) -> ConnectionSupervisor:
        return self._supervisor

    def connect(self, config: ServerConfig) -> ConnectedServerSnapshot:
        return self._runner.run_sync(self._supervisor.connect(config))

    def disconnect(self, server_id: str) -> None:
        self._runner.run_sync(self._supervisor.disconnect(server_id))

    def describe(
        self,
        server_id: str,
        config: Optional[ServerConfig] = None,
    ) -> Optional[ConnectedServerSnapshot]:
        return self._runner.run_sync(self._supervisor.describe(server_id, config))

    def list_ids(self) -> List[str]:
        return self._supervisor.list_ids()

    def is_connected(self, server_id: str) -> bool:
        return self._supervisor.is_connected(server_id)

    def call_tool(
        self,
        server_id: str,
        tool_name: str,
        arguments: Optional[Dict[str, Any]] = None,
    ) -> ToolCallResult:
        return self._runner.run_sync(self._supervisor.call_tool(server_id, tool_name, arguments))

    def get_prompt(
        self,
        server_id: str,
        prompt_name: str,
        arguments: Optional[Mapping[str, Any]] = None,
    ) -> ToolCallResult:
        return self._runner.run_sync(self._supervisor.get_prompt(server_id, prompt_name, arguments))

    def read_resource(self, server_id: str, uri: str) -> ToolCallResult:
        return self._runner.run_sync(self._supervisor.read_resource(server_id, uri))

    def execute_function_calls(
        self,
        enabled_server_ids: Sequence[str],
        function_calls: Sequence[FunctionCall],
    ) -> Dict[str, ToolCallResult]:
        return self._runner.run_sync(
            self._executor.execute_function_calls(enabled_server_ids, function_calls)
        )

    def shutdown(self) -> None:
        """
        Disconnect from every server and stop the event loop.
        """
        if self._runner.is_running:
            self._runner.run_sync(self._supervisor.disconnect_all())
        self._runner.shutdown()

    def __enter__(self) -> "SyncConnectionSupervisor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
