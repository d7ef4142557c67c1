from thesishub.schemas.project import (
    ProjectResponse,
    ProjectDetailResponse,
    ProjectUpdate,
    StatusUpdate,
    CommentResponse,
    ReplyResponse,
    LikeResponse,
    BookmarkResponse,
    ViewResponse,
    ProjectListResponse,
    CommentCreate,
    CommentDeleteResponse,
)
from thesishub.schemas.user import (
    UserResponse,
    PublicUserResponse,
    UserUpsert,
    ProfileUpdate,
    SupervisorProfileUpdate,
)
from thesishub.schemas.supervision import (
    SupervisionRequestCreate,
    SupervisionRespond,
    SupervisionRequestResponse,
)
from thesishub.schemas.notification import NotificationResponse, UnreadCountResponse
