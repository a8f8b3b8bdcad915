"""Models for the deploy protocol messages.

Every message exchanged with the deploy server over the persistent
connection is one envelope:

    {
        "status": "info",
        "type": "prepareDeployCli",
        "packageName": "my-project",
        "message": "",
        "userId": "u1",
        "data": {...},
        "token": null,
        "connId": "c1"
    }

"type" selects the shape of "data". Names ending in Cli are sent to the
CLI, names ending in Server are sent to the server.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, Field

from deploy_config.models.config import CommonServiceType, ConfigFile, GitConfig
from deploy_config.models.deploy_data import DeployData

_ALIASES = {"populate_by_name": True}


class Status(str, Enum):
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


# ─── Payloads ────────────────────────────────────────────


class SetSocketCliData(BaseModel):
    conn_id: str = Field(alias="connId")
    deploy_data: DeployData = Field(alias="deployData")

    model_config = _ALIASES


class SetSocketServerData(BaseModel):
    version: str


class CheckTokenCliData(BaseModel):
    checked: bool
    skip_set_project: bool = Field(alias="skipSetProject")
    err_mess: str | None = Field(default=None, alias="errMess")

    model_config = _ALIASES


class CheckTokenServerData(BaseModel):
    skip_set_project: bool = Field(alias="skipSetProject")

    model_config = _ALIASES


class MessageData(BaseModel):
    msg: str | int
    end: bool


class PrepareDeployServerData(BaseModel):
    project_deleted: bool = Field(alias="projectDeleted")
    config: ConfigFile
    volumes: dict[str, list[str]] = Field(default_factory=dict)
    # older clients spell it "interractive"
    interactive: bool = Field(validation_alias=AliasChoices("interactive", "interractive"))

    model_config = _ALIASES


class DeployPrepareVolumeUploadCliData(BaseModel):
    url: str
    service_name: str = Field(alias="serviceName")

    model_config = _ALIASES


class PrepareDeployCliData(BaseModel):
    """Sent once per service before its files are uploaded."""

    exclude: list[str] | None = None
    pwd: str
    service: str
    # file cache entries from the previous upload
    cache: list[dict[str, Any]] = Field(default_factory=list)
    active: bool
    git: GitConfig | None = None


class DeployGitServerData(BaseModel):
    git: GitConfig
    pwd: str
    service: str
    last: bool
    active: bool


class DeployGitCliData(BaseModel):
    service: str
    last: bool


class DeployEndServerData(BaseModel):
    service: str
    skip: bool
    last: bool  # last service
    latest: bool  # last file of the service
    file: str
    num: int


class DeployDeleteFilesServerData(BaseModel):
    service: str
    files: list[str]
    cwd: str
    last: bool
    pwd: str


class DeployDeleteFilesCliData(DeployDeleteFilesServerData):
    url: str


class GetDeployDataData(BaseModel):
    node_name: str | None = Field(default=None, alias="nodeName")

    model_config = _ALIASES


class GetLogsServerData(BaseModel):
    watch: bool
    timestamps: bool
    project: str
    service_name: str = Field(alias="serviceName")
    since: str | None = None
    until: str | None = None
    tail: int | None = None
    clear: bool
    config: ConfigFile | None = None

    model_config = _ALIASES


class GetLogsCliData(GetLogsServerData):
    url: str


class LogsData(BaseModel):
    last: bool
    text: str
    num: int


class RemoveData(BaseModel):
    project: str


class AcceptDeleteCliData(BaseModel):
    container_name: str = Field(alias="containerName")
    service_name: str = Field(alias="serviceName")
    service_type: CommonServiceType = Field(alias="serviceType")

    model_config = _ALIASES


class AcceptDeleteServerData(BaseModel):
    container_name: str = Field(alias="containerName")
    accept: bool

    model_config = _ALIASES


class IpServerData(BaseModel):
    project: str


class IpCliData(BaseModel):
    ip: str


# ─── Envelopes ───────────────────────────────────────────


class Envelope(BaseModel):
    """Fields common to every message."""

    status: Status = Status.INFO
    type: str
    package_name: str = Field(default="", alias="packageName")
    message: str = ""
    user_id: str = Field(default="", alias="userId")
    data: Any = None
    token: str | None = None
    conn_id: str = Field(default="", alias="connId")

    model_config = _ALIASES

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class AnyMessage(Envelope):
    type: Literal["any"] = "any"
    data: Any = None


class SetSocketCliMessage(Envelope):
    type: Literal["setSocketCli"] = "setSocketCli"
    data: SetSocketCliData


class SetSocketServerMessage(Envelope):
    type: Literal["setSocketServer"] = "setSocketServer"
    data: SetSocketServerData


class LoginCliMessage(Envelope):
    type: Literal["loginCli"] = "loginCli"
    data: str


class LoginServerMessage(Envelope):
    type: Literal["loginServer"] = "loginServer"
    data: str


class CheckTokenCliMessage(Envelope):
    type: Literal["checkTokenCli"] = "checkTokenCli"
    data: CheckTokenCliData


class CheckTokenServerMessage(Envelope):
    type: Literal["checkTokenServer"] = "checkTokenServer"
    data: CheckTokenServerData


class MessageMessage(Envelope):
    type: Literal["message"] = "message"
    data: MessageData


class PrepareDeployServerMessage(Envelope):
    type: Literal["prepareDeployServer"] = "prepareDeployServer"
    data: PrepareDeployServerData


class DeployPrepareVolumeUploadCliMessage(Envelope):
    type: Literal["deployPrepareVolumeUploadCli"] = "deployPrepareVolumeUploadCli"
    data: DeployPrepareVolumeUploadCliData


class PrepareDeployCliMessage(Envelope):
    type: Literal["prepareDeployCli"] = "prepareDeployCli"
    data: PrepareDeployCliData


class DeployGitServerMessage(Envelope):
    type: Literal["deployGitServer"] = "deployGitServer"
    data: DeployGitServerData


class DeployGitCliMessage(Envelope):
    type: Literal["deployGitCli"] = "deployGitCli"
    data: DeployGitCliData


class DeployEndServerMessage(Envelope):
    type: Literal["deployEndServer"] = "deployEndServer"
    data: DeployEndServerData


class DeployDeleteFilesServerMessage(Envelope):
    type: Literal["deployDeleteFilesServer"] = "deployDeleteFilesServer"
    data: DeployDeleteFilesServerData


class DeployDeleteFilesCliMessage(Envelope):
    type: Literal["deployDeleteFilesCli"] = "deployDeleteFilesCli"
    data: DeployDeleteFilesCliData


class GetDeployDataMessage(Envelope):
    type: Literal["getDeployData"] = "getDeployData"
    data: GetDeployDataData


class DeployDataMessage(Envelope):
    type: Literal["deployData"] = "deployData"
    data: DeployData


class GetLogsServerMessage(Envelope):
    type: Literal["getLogsServer"] = "getLogsServer"
    data: GetLogsServerData


class GetLogsCliMessage(Envelope):
    type: Literal["getLogsCli"] = "getLogsCli"
    data: GetLogsCliData


class LogsMessage(Envelope):
    type: Literal["logs"] = "logs"
    data: LogsData


class RemoveMessage(Envelope):
    type: Literal["remove"] = "remove"
    data: RemoveData


class AcceptDeleteCliMessage(Envelope):
    type: Literal["acceptDeleteCli"] = "acceptDeleteCli"
    data: AcceptDeleteCliData


class AcceptDeleteServerMessage(Envelope):
    type: Literal["acceptDeleteServer"] = "acceptDeleteServer"
    data: AcceptDeleteServerData


class IpServerMessage(Envelope):
    type: Literal["ipServer"] = "ipServer"
    data: IpServerData


class IpCliMessage(Envelope):
    type: Literal["ipCli"] = "ipCli"
    data: IpCliData


_MESSAGE_CLASSES: tuple[type[Envelope], ...] = (
    AnyMessage,
    SetSocketCliMessage,
    SetSocketServerMessage,
    LoginCliMessage,
    LoginServerMessage,
    CheckTokenCliMessage,
    CheckTokenServerMessage,
    MessageMessage,
    PrepareDeployServerMessage,
    DeployPrepareVolumeUploadCliMessage,
    PrepareDeployCliMessage,
    DeployGitServerMessage,
    DeployGitCliMessage,
    DeployEndServerMessage,
    DeployDeleteFilesServerMessage,
    DeployDeleteFilesCliMessage,
    GetDeployDataMessage,
    DeployDataMessage,
    GetLogsServerMessage,
    GetLogsCliMessage,
    LogsMessage,
    RemoveMessage,
    AcceptDeleteCliMessage,
    AcceptDeleteServerMessage,
    IpServerMessage,
    IpCliMessage,
)

# message kind → envelope class
MESSAGE_TYPES: dict[str, type[Envelope]] = {
    cls.model_fields["type"].default: cls for cls in _MESSAGE_CLASSES
}

Message = Annotated[
    Union[
        AnyMessage,
        SetSocketCliMessage,
        SetSocketServerMessage,
        LoginCliMessage,
        LoginServerMessage,
        CheckTokenCliMessage,
        CheckTokenServerMessage,
        MessageMessage,
        PrepareDeployServerMessage,
        DeployPrepareVolumeUploadCliMessage,
        PrepareDeployCliMessage,
        DeployGitServerMessage,
        DeployGitCliMessage,
        DeployEndServerMessage,
        DeployDeleteFilesServerMessage,
        DeployDeleteFilesCliMessage,
        GetDeployDataMessage,
        DeployDataMessage,
        GetLogsServerMessage,
        GetLogsCliMessage,
        LogsMessage,
        RemoveMessage,
        AcceptDeleteCliMessage,
        AcceptDeleteServerMessage,
        IpServerMessage,
        IpCliMessage,
    ],
    Field(discriminator="type"),
]
