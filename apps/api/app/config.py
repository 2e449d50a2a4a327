from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
  model_config = SettingsConfigDict(env_file=".env", extra="ignore")

  app_version: str = "v2026-10-18+r1"
  build_sha: str = "dev"
  log_level: str = "INFO"

  # Identity is resolved upstream; the API only reads the principal text.
  principal_header: str = "X-Principal"
  anonymous_principal: str = "2vxsx-fae"

  state_file: str | None = None

  cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000,http://0.0.0.0:3000"
  cors_origin_regex: str = r"^http://(localhost|127\.0\.0\.1|0\.0\.0\.0):3000$"
  trusted_hosts: str = "localhost,127.0.0.1,0.0.0.0,api,web,test"

  rate_limit_invite_lookup_ip_per_minute: int = 60
  rate_limit_invite_join_ip_per_minute: int = 30

  max_board_name_length: int = 100
  max_column_name_length: int = 100
  max_card_title_length: int = 200
  max_card_description_length: int = 5000
  max_tag_name_length: int = 50
  min_username_length: int = 3
  max_username_length: int = 50
  max_email_length: int = 254

  def cors_origin_list(self) -> list[str]:
    return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

  def trusted_host_list(self) -> list[str]:
    return [h.strip() for h in self.trusted_hosts.split(",") if h.strip()]


settings = Settings()
