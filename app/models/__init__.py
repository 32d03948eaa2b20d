# create_all이 모든 테이블을 인식하도록 모델 모듈을 한 번에 import
from app.models.user import User, Role  # noqa: F401
from app.models.finance import FinanceRecord  # noqa: F401
from app.models.activity import EventPlan, ActivityDetail, ActivityRegistration  # noqa: F401
from app.models.secretary import SecretaryDocument, MeetingRecord, Notification  # noqa: F401
from app.models.design import DesignWork  # noqa: F401
from app.models.pr import PrActivity, Partner, Vendor  # noqa: F401
from app.models.history import SystemLog, OperationHistory, LoginHistory  # noqa: F401
from app.models.setting import SystemSetting  # noqa: F401
