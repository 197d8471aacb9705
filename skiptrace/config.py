from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    fetch_backend: str = "scrapingbee"
    scrapingbee_api_key: str = ""
    zyte_api_key: str = ""
    anthropic_api_key: str = ""
    slack_webhook_url: str = ""
    log_level: str = "INFO"

    max_parallel_rows: int = 10
    max_parallel_relatives: int = 10
    max_relatives_to_crawl: int = 5

    fund_detection_strings: str = "fund,funds,family"
    ignore_llc_results_strings: str = ""

    fetch_delay_min: float = 4.0
    fetch_delay_max: float = 7.0
    fetch_error_delay: float = 3.0
    relative_delay: float = 0.02


def split_patterns(value: str) -> list[str]:
    """Comma-separated setting → list of non-empty patterns."""
    return [p.strip() for p in value.split(",") if p.strip()]
