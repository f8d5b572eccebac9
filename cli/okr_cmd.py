"""
CLI 命令：okr
查看进度、历史、趋势，平衡权重，导出文本报告
"""
import sys
from pathlib import Path
from typing import Optional

import click

# 添加项目根目录到 sys.path，以便导入 okr 模块
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.append(str(project_root))

from okr.config_manager import config  # noqa: E402
from okr.exceptions import OKRError  # noqa: E402
from okr.history import describe_entry  # noqa: E402
from okr.models import GROUPS  # noqa: E402
from okr.okr_service import OKRService  # noqa: E402
from okr.store import DocumentStore  # noqa: E402


def _service(ctx: click.Context) -> OKRService:
    return OKRService.from_store(DocumentStore(ctx.obj.get("data")))


@click.group()
@click.option(
    "--data",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="OKR 文档路径 (默认 data/okr_data.json)",
)
@click.pass_context
def okr(ctx: click.Context, data: Optional[Path]):
    """OKR Tracker 命令行工具"""
    ctx.ensure_object(dict)
    ctx.obj["data"] = data


@okr.command()
@click.option("--group", type=click.Choice([g.value for g in GROUPS]), default=None)
@click.pass_context
def summary(ctx: click.Context, group: Optional[str]):
    """按分组显示进度，并列出目标"""
    service = _service(ctx)

    click.echo("📊 分组进度")
    for name, row in service.dashboard().items():
        click.echo(f"  {name:<10} {row['count']} objective(s)  {row['progress']:>3}%")

    objectives = service.objective_views(group=group)
    if not objectives:
        click.echo("\nℹ️ 还没有目标")
        return

    click.echo("")
    for view in objectives:
        outline = f" [{view['outlineClass']}]" if view["outlineClass"] else ""
        click.echo(f"🎯 {view['title']} ({view['group']}, {view['weight']}%) {view['progress']}%{outline}")
        for kr in view["krViewModels"]:
            overdue = " ⏰" if kr["checkinOverdue"] else ""
            click.echo(
                f"    - {kr['title']}: {kr['current']}/{kr['target']} ({kr['progress']}%) "
                f"{kr['statusLabel']}{overdue}"
            )


@okr.command()
@click.option("--item-type", type=click.Choice(["objective", "keyresult", "system"]), default=None)
@click.option("--group", default=None)
@click.option("--limit", type=int, default=20, show_default=True)
@click.pass_context
def history(ctx: click.Context, item_type: Optional[str], group: Optional[str], limit: int):
    """显示最近的变更历史"""
    entries = _service(ctx).list_history(item_type=item_type, group=group)
    if not entries:
        click.echo("ℹ️ 没有匹配的历史记录")
        return

    for entry in entries[:limit]:
        description = describe_entry(entry)
        group_label = f" [{entry.group}]" if entry.group else ""
        click.echo(f"{entry.timestamp}  {entry.type.value:<17} {entry.item_title}{group_label}")
        if description:
            click.echo(f"    {description}")


@okr.command()
@click.option("--individual", is_flag=True, help="按目标显示，而不是按分组")
@click.option("--group", default=None)
@click.option("--objective", "objective_id", default=None)
@click.pass_context
def trends(ctx: click.Context, individual: bool, group: Optional[str], objective_id: Optional[str]):
    """显示进度趋势"""
    service = _service(ctx)

    if not individual:
        series = service.grouped_trend()
        if not any(series.values()):
            click.echo("ℹ️ 暂无进度快照")
            return
        for name, points in series.items():
            click.echo(f"\n[{name}]")
            for point in points:
                click.echo(f"  {point.timestamp}  {point.value:>3}%  (n={point.count})")
        return

    results = service.individual_trend(group=group, objective_id=objective_id)
    if not results:
        click.echo("ℹ️ 没有匹配的趋势数据")
        return
    for trend in results:
        click.echo(f"\n[{trend.title}] ({trend.group})")
        for point in trend.points:
            click.echo(f"  {point.timestamp}  {point.value:>3}%")


@okr.command()
@click.option("--objective", "objective_id", default=None, help="只平衡该目标下的关键结果")
@click.pass_context
def balance(ctx: click.Context, objective_id: Optional[str]):
    """平均分配权重"""
    service = _service(ctx)
    try:
        if objective_id:
            if not service.balance_key_result_weights(objective_id):
                click.echo(f"❌ 找不到目标: {objective_id}", err=True)
                return
            click.echo("✅ 关键结果权重已平衡")
        else:
            service.balance_objective_weights()
            click.echo("✅ 目标权重已平衡")
    except OKRError as e:
        click.echo(f"❌ {e.get_user_message()}", err=True)
        sys.exit(1)


@okr.command()
@click.argument("objective_id")
@click.argument("key_result_id")
@click.option("--delta", type=float, default=config.PROGRESS_STEP, show_default=True)
@click.pass_context
def progress(ctx: click.Context, objective_id: str, key_result_id: str, delta: float):
    """调整关键结果的当前值 (负数为减少)"""
    service = _service(ctx)
    try:
        kr = service.adjust_progress(objective_id, key_result_id, delta)
    except OKRError as e:
        click.echo(f"❌ {e.get_user_message()}", err=True)
        sys.exit(1)
    if kr is None:
        click.echo("❌ 找不到该关键结果", err=True)
        return
    click.echo(f"✅ {kr.title}: {kr.current}/{kr.target}")


@okr.command()
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.pass_context
def report(ctx: click.Context, output: Optional[Path]):
    """导出文本报告"""
    service = _service(ctx)
    if not service.document.objectives:
        click.echo("ℹ️ 没有可导出的目标")
        return

    text = service.export_report()
    if output is None:
        click.echo(text, nl=False)
        return
    output.write_text(text, encoding="utf-8")
    click.echo(f"📁 报告已写入: {output}")


if __name__ == "__main__":
    okr()
