"""
Prompt Template Engine for workout extraction prompts.
Handles template loading, rendering, and validation.
"""
import yaml
from typing import Dict, Any, Optional, List
from pathlib import Path
from jinja2 import Environment, FileSystemLoader
from dataclasses import dataclass, field

from workout_import.core.exceptions import ConfigurationError
from workout_import.utils.logging import CorrelatedLogger


@dataclass
class PromptConfig:
    """Configuration for a complete prompt template."""
    system_role: str
    instruction: str
    rules: List[str] = field(default_factory=list)
    response_format: Dict[str, str] = field(default_factory=dict)


class PromptTemplateEngine:
    """
    Template engine for managing and rendering inference prompts.

    One YAML file per import path and language, under ``prompts/<path>/<language>.yaml``.
    Every text field is a Jinja2 template rendered with the request's signals
    (``platform_name``, ``sticker_text``, ``caption_text``, image counts).
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize the template engine.

        Args:
            config_dir: Path to configuration directory. Defaults to workout_import/config/
        """
        self.logger = CorrelatedLogger(__name__)

        if config_dir is None:
            config_dir = Path(__file__).parent.parent

        self.config_dir = Path(config_dir)
        self.prompts_dir = self.config_dir / "prompts"

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.prompts_dir)),
            trim_blocks=True,
            lstrip_blocks=True,
            autoescape=False
        )

        self._config_cache: Dict[str, Dict[str, Any]] = {}

        self.logger.info(f"PromptTemplateEngine initialized with config_dir: {config_dir}")

    def load_prompt_config(self, prompt_type: str, language: str = "en") -> PromptConfig:
        """
        Load prompt configuration for an import path and language.

        Raises:
            ConfigurationError: If configuration cannot be loaded
        """
        cache_key = f"{prompt_type}_{language}"

        if cache_key in self._config_cache:
            return self._build_prompt_config(self._config_cache[cache_key])

        config_path = self.prompts_dir / prompt_type / f"{language}.yaml"

        if not config_path.exists():
            raise ConfigurationError(
                f"prompt {prompt_type}/{language}",
                f"not found, available languages: {self._get_available_languages(prompt_type)}"
            )

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"prompt {prompt_type}/{language}", str(e))

        self._config_cache[cache_key] = config_data
        self.logger.info(f"Loaded prompt configuration: {prompt_type}/{language}")
        return self._build_prompt_config(config_data)

    def render_prompt(self, prompt_type: str, language: str = "en", **template_vars) -> str:
        """
        Render the complete prompt for an import path.

        Args:
            prompt_type: Import path name (``fast``, ``frames`` or ``unified``)
            language: Language code
            **template_vars: Variables to pass to the template

        Returns:
            Rendered prompt string
        """
        config = self.load_prompt_config(prompt_type, language)

        prompt_parts = [config.system_role, config.instruction]

        if config.response_format.get('instruction'):
            prompt_parts.append(config.response_format['instruction'])

        if config.rules:
            prompt_parts.append("Rules:\n" + "\n".join(f"- {rule}" for rule in config.rules))

        full_prompt = "\n\n".join(part.strip() for part in prompt_parts if part and part.strip())

        try:
            rendered = self.jinja_env.from_string(full_prompt).render(**template_vars)
        except Exception as e:
            self.logger.error(f"Failed to render prompt: {prompt_type}/{language} - {str(e)}")
            raise ConfigurationError(f"prompt {prompt_type}/{language}", str(e))

        self.logger.debug(f"Rendered prompt for {prompt_type}/{language} ({len(rendered)} chars)")
        return rendered

    def get_available_prompt_types(self) -> List[str]:
        """Get list of available prompt types."""
        if not self.prompts_dir.exists():
            return []

        return sorted(
            item.name for item in self.prompts_dir.iterdir()
            if item.is_dir() and not item.name.startswith('.')
        )

    def validate_configuration(self, prompt_type: str, language: str = "en") -> bool:
        """
        Validate that a configuration is properly formatted.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        config = self.load_prompt_config(prompt_type, language)

        if not config.system_role.strip():
            raise ConfigurationError(f"prompt {prompt_type}/{language}", "system_role cannot be empty")

        if not config.instruction.strip():
            raise ConfigurationError(f"prompt {prompt_type}/{language}", "instruction cannot be empty")

        if not config.response_format.get('instruction'):
            raise ConfigurationError(f"prompt {prompt_type}/{language}", "response_format.instruction is required")

        self.logger.info(f"Configuration validation passed: {prompt_type}/{language}")
        return True

    def _build_prompt_config(self, config_data: Dict[str, Any]) -> PromptConfig:
        """Build PromptConfig object from raw configuration data."""
        main_prompt = config_data.get('main_prompt', {})

        return PromptConfig(
            system_role=config_data.get('system_role', ''),
            instruction=main_prompt.get('instruction', ''),
            rules=list(main_prompt.get('rules', [])),
            response_format=config_data.get('response_format', {})
        )

    def _get_available_languages(self, prompt_type: str) -> List[str]:
        """Get available language codes for a prompt type."""
        prompt_dir = self.prompts_dir / prompt_type

        if not prompt_dir.exists():
            return []

        return sorted(
            item.stem for item in prompt_dir.iterdir()
            if item.is_file() and item.suffix == '.yaml'
        )


# Global template engine instance
_template_engine = None

def get_template_engine() -> PromptTemplateEngine:
    """Get global template engine instance (singleton pattern)."""
    global _template_engine
    if _template_engine is None:
        _template_engine = PromptTemplateEngine()
    return _template_engine
