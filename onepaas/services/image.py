"""Build a container image from a checkout and publish it to a registry."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path

from onepaas.container.engine import ContainerEngine, EngineFailure
from onepaas.core.deadline import Deadline
from onepaas.core.result import Err, Ok, Result
from onepaas.core.step_errors import (
    EngineUnavailable,
    ImagePublishFailed,
    OperationTimedOut,
    StepError,
)
from onepaas.output.console import ConsoleProtocol, MockConsole

__all__ = [
    "BuildAndPublishParam",
    "DEFAULT_DOCKERFILE_PATH",
    "DEFAULT_IMAGE_TAG",
    "DEFAULT_REGISTRY_ADDRESS",
    "ImagePublisher",
    "image_address",
]

DEFAULT_DOCKERFILE_PATH = "./Dockerfile"
DEFAULT_REGISTRY_ADDRESS = "docker.io"
DEFAULT_IMAGE_TAG = "latest"


def image_address(registry: str, repository: str, tag: str) -> str:
    """`<registry>/<repository>:<tag>`, with the registry and tag defaults applied."""
    return f"{registry or DEFAULT_REGISTRY_ADDRESS}/{repository}:{tag or DEFAULT_IMAGE_TAG}"


@dataclass(frozen=True, slots=True)
class BuildAndPublishParam:
    """Parameters of the build-and-publish step.

    Attributes:
        work_directory: Checkout used as the build context.
        image_repository: Repository within the registry, e.g. "acme/app".
        dockerfile: Dockerfile path relative to `work_directory` ("./Dockerfile" if empty).
        registry_address: Registry host ("docker.io" if empty).
        registry_username: Registry login.
        registry_secret: Registry password or token. Never printed.
        image_tag: Image tag ("latest" if empty).
    """

    work_directory: str
    image_repository: str
    dockerfile: str = ""
    registry_address: str = ""
    registry_username: str = ""
    registry_secret: str = field(default="", repr=False)
    image_tag: str = ""

    def with_defaults(self) -> BuildAndPublishParam:
        return replace(
            self,
            dockerfile=self.dockerfile or DEFAULT_DOCKERFILE_PATH,
            registry_address=self.registry_address or DEFAULT_REGISTRY_ADDRESS,
            image_tag=self.image_tag or DEFAULT_IMAGE_TAG,
        )

    @property
    def publish_address(self) -> str:
        return image_address(self.registry_address, self.image_repository, self.image_tag)


class ImagePublisher:
    """Builds, authenticates and pushes through a `ContainerEngine`."""

    def __init__(self, engine: ContainerEngine, *, console: ConsoleProtocol | None = None) -> None:
        self._engine = engine
        self._console: ConsoleProtocol = console if console is not None else MockConsole()

    def build_and_publish(
        self,
        param: BuildAndPublishParam,
        *,
        deadline: Deadline | None = None,
    ) -> Result[str, StepError]:
        """Build the image and push it.

        Registry credentials live in a store private to this call, so
        concurrent runs never see each other's logins.

        Returns:
            Ok(publish address), e.g. "docker.io/acme/app:v1"
            Err(ImagePublishFailed | EngineUnavailable | OperationTimedOut)
        """
        deadline = deadline if deadline is not None else Deadline.unbounded()
        budget = deadline.remaining()
        p = param.with_defaults()
        address = p.publish_address
        dockerfile = Path(p.work_directory) / p.dockerfile

        self._console.info(f"building {address} from {dockerfile}")
        try:
            with self._engine.isolated() as engine:
                published = self._publish(engine, p, deadline, budget)
        except OSError as e:
            return Err(EngineUnavailable(operation="image build", reason=f"no private engine session: {e}"))
        if isinstance(published, Err):
            return published

        self._console.success(f"published {address}")
        return Ok(address)

    def _publish(
        self,
        engine: ContainerEngine,
        p: BuildAndPublishParam,
        deadline: Deadline,
        budget: float | None,
    ) -> Result[None, StepError]:
        address = p.publish_address
        work_dir = Path(p.work_directory)
        built = engine.build(
            context_dir=work_dir,
            dockerfile=work_dir / p.dockerfile,
            tag=address,
            timeout=deadline.remaining(),
        )
        if isinstance(built, Err):
            return Err(_step_error("build", address, built.error, budget))

        if p.registry_username or p.registry_secret:
            logged_in = engine.login(
                registry=p.registry_address,
                username=p.registry_username,
                secret=p.registry_secret,
                timeout=deadline.remaining(),
            )
            if isinstance(logged_in, Err):
                return Err(_step_error("login", address, logged_in.error, budget))
        else:
            self._console.warning(f"no credentials for {p.registry_address}; pushing anonymously")

        pushed = engine.push(address=address, timeout=deadline.remaining())
        if isinstance(pushed, Err):
            return Err(_step_error("push", address, pushed.error, budget))
        return Ok(None)


def _step_error(
    stage: str,
    address: str,
    failure: EngineFailure,
    budget: float | None,
) -> StepError:
    if failure.timed_out:
        return OperationTimedOut(operation=f"image {stage}", timeout=budget)
    if not failure.launched:
        return EngineUnavailable(operation=f"image {stage}", reason=failure.message)
    match stage:
        case "build" | "login" | "push":
            return ImagePublishFailed(
                stage=stage,
                address=address,
                stderr=failure.message,
                returncode=failure.returncode,
            )
    raise ValueError(f"unknown image stage: {stage}")
