"""_net.py: TCP transport for the peer protocol.

The server side accepts connections on a background thread and serves each
one on its own thread. The client side opens a short-lived connection per
request. Both sides carry exactly one request per connection.
"""
import socket
import threading
from typing import Callable, Optional

from loguru import logger

from ._wire import (
    ProtocolError,
    Request,
    encode_request,
    has_payload,
    parse_request,
)
from .address import Address

RequestHandler = Callable[[Request], Optional[str]]


class _Net:
    """Request server and peer client for one node.

    Args:
        ip: Interface to bind.
        port: Port to listen on.
        request_handler: Called with each decoded Request; returns the reply
            line (without newline) or None when the command has no reply.
        timeout: Seconds allowed for connecting to or reading from a peer.
    """
    _BACKLOG: int = 5
    _ACCEPT_POLL: float = 0.5

    def __init__(self,
                 ip: str,
                 port: int,
                 request_handler: RequestHandler,
                 timeout: float = 5.0,
    ) -> None:
        self._ip = ip
        self._port = port
        self._request_handler = request_handler
        self._timeout = timeout
        self._running = False
        self.server_socket: Optional[socket.socket] = None
        self.network_thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Binds the server socket and starts the accept loop."""
        self.server_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.server_socket.setsockopt(
            socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self.server_socket.bind((self._ip, self._port))
        self.server_socket.listen(self._BACKLOG)
        self.server_socket.settimeout(self._ACCEPT_POLL)
        self._running = True

        self.network_thread = threading.Thread(
            target=self._listen_for_connections,
            daemon=True
        )
        self.network_thread.start()
        logger.debug(f"listening on {self._ip}:{self._port}")

    def stop(self) -> None:
        """Stops accepting connections and waits for the accept loop."""
        self._running = False
        if self.server_socket:
            self.server_socket.close()
        if self.network_thread:
            self.network_thread.join()

    def _listen_for_connections(self) -> None:
        while self._running:
            assert self.server_socket is not None
            try:
                conn, _ = self.server_socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.warning(f"Error accepting connection: {e}")
                continue
            threading.Thread(
                target=self._handle_connection,
                args=(conn,),
                daemon=True
            ).start()

    def _handle_connection(self, conn: socket.socket) -> None:
        """Serves a single request, then closes the connection."""
        try:
            with conn, conn.makefile("r", encoding="utf-8",
                                     newline="\n") as stream:
                conn.settimeout(self._timeout)
                line = stream.readline()
                if not line:
                    return
                request = parse_request(line)
                if has_payload(request.command):
                    payload = stream.readline()
                    if not payload:
                        raise ProtocolError(
                            f"{request.command} without payload line")
                    request = request._replace(
                        payload=payload.rstrip("\r\n"))

                response = self._request_handler(request)
                if response is not None:
                    conn.sendall(f"{response}\n".encode())
        except ProtocolError as e:
            logger.warning(f"Dropping malformed request: {e}")
        except OSError as e:
            logger.warning(f"Connection error: {e}")
        except Exception as e:
            logger.exception(f"Error handling connection: {e}")

    def send_request(self,
                     dest: Address,
                     command: str,
                     *args: object,
    ) -> Optional[str]:
        """Sends a request that expects one reply line.

        Returns:
            The reply line without its newline. None if the peer could not
            be reached at all. An empty string if the peer accepted the
            connection but timed out or closed without answering.
        """
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
                sock.settimeout(self._timeout)
                try:
                    sock.connect((dest.ip, dest.port))
                except (OSError, OverflowError) as e:
                    self._log_failure(command, dest, e)
                    return None
                sock.sendall(encode_request(command, *args))
                with sock.makefile("r", encoding="utf-8",
                                   newline="\n") as stream:
                    reply = stream.readline()
        except OSError as e:
            self._log_failure(command, dest, e)
            return ""

        if not reply:
            logger.warning(f"No reply: {command} to {dest}")
            return ""
        return reply.rstrip("\r\n")

    def send_oneway(self,
                    dest: Address,
                    command: str,
                    *args: object,
                    payload: Optional[str] = None,
    ) -> bool:
        """Sends a request that has no reply.

        Returns:
            True if the request was written to the peer.
        """
        data = encode_request(command, *args, payload=payload)
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
                sock.settimeout(self._timeout)
                sock.connect((dest.ip, dest.port))
                sock.sendall(data)
        except (OSError, OverflowError) as e:
            self._log_failure(command, dest, e)
            return False
        return True

    @staticmethod
    def _log_failure(command: str, dest: Address, error: Exception) -> None:
        if isinstance(error, socket.timeout):
            logger.warning(f"Request timed out: {command} to {dest}")
        elif isinstance(error, ConnectionRefusedError):
            logger.warning(f"Connection refused: {command} to {dest}")
        else:
            logger.warning(
                f"Network request error: {command} to {dest}: {error}")
