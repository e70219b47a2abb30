from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)

    app_name: str = "IoT Control Panel"
    timezone: str = "America/Bogota"

    # Device (ESP32 WebSocket server)
    device_host: str = "192.168.1.100"
    device_port: int = 81
    open_timeout_s: float = 5.0

    # Transport mode: "ws" for the real board, "sim" for development
    transport_mode: str = Field(default="ws")
    auto_connect: bool = False

    # Timing
    poll_interval_ms: int = Field(default=2000, ge=1)
    debounce_ms: int = Field(default=100, ge=0)

    # Rolling history for charts
    history_capacity: int = Field(default=20, ge=1)

    # Sim device
    sim_response_delay_ms: int = 20

    log_file: str = "iotpanel.log"

    @property
    def websocket_url(self) -> str:
        # No TLS support on the board firmware
        return f"ws://{self.device_host}:{self.device_port}"

    @property
    def poll_interval_s(self) -> float:
        return self.poll_interval_ms / 1000.0

    @property
    def debounce_s(self) -> float:
        return self.debounce_ms / 1000.0


settings = Settings()
